"""
Seed the built-in task templates.

Usage:
    python -m rental_api.seed [created_by]
"""

import sys

from rental_api.services.task_templates import get_task_template_service
from rental_api.utils.database import db
from rental_api.utils.logger import setup_logger

logger = setup_logger("rental_api")


def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else argv
    created_by = args[0] if args else "system"

    try:
        templates = get_task_template_service().seed_system_templates(created_by=created_by)
    finally:
        db.close()

    for template in templates:
        logger.info(f"System template ready: {template.name} ({template.template_id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
