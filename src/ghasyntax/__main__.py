import argparse
import logging
import sys
from pathlib import Path

from ruamel.yaml.error import YAMLError

from ._errors import WorkflowParseError
from ._parse import load_workflow

logger: logging.Logger = logging.getLogger(__name__)


def main():
    """Process command line arguments"""

    parser = argparse.ArgumentParser(
        description="Check GitHub Actions workflow files build into a syntax tree."
    )
    parser.add_argument(
        "workflow_files", nargs="+", help="GitHub Actions workflow YAML files"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug logging"
    )

    args = parser.parse_args()

    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        level=logging.DEBUG if args.verbose else logging.WARNING,
    )

    failed = False
    for workflow_file in args.workflow_files:
        if not _check(Path(workflow_file)):
            failed = True

    sys.exit(1 if failed else 0)


def _check(path: Path) -> bool:
    logger.debug("Loading %s", path)
    try:
        workflow = load_workflow(path)
    except WorkflowParseError as error:
        for each in error.errors:
            print(f"{path}:{each.pos.line}:{each.pos.col}: {each.message}")
        return False
    except YAMLError as error:
        print(f"{path}: invalid YAML: {error}")
        return False
    except OSError as error:
        print(f"{path}: {error.strerror}")
        return False

    triggers = ", ".join(event.event_name() for event in workflow.on)
    print(f"{path}: {len(workflow.jobs)} job(s), triggers: {triggers}")
    return True


if __name__ == "__main__":
    main()
