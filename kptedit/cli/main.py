"""kptedit CLI - Command-line interface for Kptfile editing.

This module provides the main CLI entrypoint for kptedit, allowing users to
edit the Kptfile of a kpt package directory from the command line.
"""

import argparse
import logging
import sys
from typing import Dict, List, Optional

from kptedit.core.config import get_int_config_value
from kptedit.core.errors import KptfileError
from kptedit.kpt.api import KPTFILE_NAME, Condition, ConditionStatus, Function, ReadinessGate
from kptedit.kpt.package import KptPackage
from kptedit.kpt.pipeline import PIPELINE_SECTIONS

logger = logging.getLogger(__name__)


def parse_key_values(pairs: List[str]) -> Dict[str, str]:
    """Parse ``KEY=VALUE`` arguments into a dict.

    Raises:
        ValueError: If an argument has no "="
    """
    result = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"expected KEY=VALUE, got {pair!r}")
        result[key] = value
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kptedit",
        description="kptedit - edit the Kptfile of a kpt package",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Print the Kptfile
  kptedit show my-package/

  # Mark the package as ready
  kptedit set-condition my-package/ --type Ready --status True --reason Rendered

  # Add a default condition only if it is not set yet
  kptedit set-condition my-package/ --type Ready --status False --default

  # Add a mutator at the front of the pipeline
  kptedit upsert-function my-package/ --image set-labels:v0.2 --name set-labels \\
      --position 0 --config app=payments

  # Replace all labels
  kptedit set-labels my-package/ team=payments env=prod
""",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    def add_package_parser(name: str, help_text: str) -> argparse.ArgumentParser:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("package", help="Path to the kpt package directory")
        sub.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
        return sub

    add_package_parser("show", "Print the Kptfile of a package")

    cond_parser = add_package_parser("set-condition", "Create or update a status condition")
    cond_parser.add_argument("--type", required=True, help="Condition type, e.g. Ready")
    cond_parser.add_argument(
        "--status",
        required=True,
        choices=[s.value for s in ConditionStatus],
        help="Condition status",
    )
    cond_parser.add_argument("--reason", default="", help="Condition reason")
    cond_parser.add_argument("--message", default="", help="Condition message")
    cond_parser.add_argument(
        "--default",
        action="store_true",
        help="Only add the condition if one with the same type doesn't exist",
    )

    del_parser = add_package_parser("delete-condition", "Delete conditions by type")
    del_parser.add_argument("--type", required=True, help="Condition type to delete")

    gates_parser = add_package_parser("ensure-gates", "Ensure readiness gates are present")
    gates_parser.add_argument("condition_types", nargs="+", help="Condition types to gate on")

    fn_parser = add_package_parser("upsert-function", "Add or update a pipeline function")
    fn_parser.add_argument("--image", required=True, help="Function image")
    fn_parser.add_argument("--name", default="", help="Function name (upsert key)")
    fn_parser.add_argument(
        "--section",
        default="mutators",
        choices=PIPELINE_SECTIONS,
        help="Pipeline section (default: mutators)",
    )
    fn_parser.add_argument(
        "--position",
        type=int,
        default=None,
        help="Insert position; negative counts from the end, -1 appends "
        "(default: from kptedit.json or -1)",
    )
    fn_parser.add_argument(
        "--config",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Inline configMap entry (repeatable)",
    )

    labels_parser = add_package_parser("set-labels", "Replace the Kptfile labels")
    labels_parser.add_argument("labels", nargs="*", metavar="KEY=VALUE")

    ann_parser = add_package_parser("set-annotations", "Replace the Kptfile annotations")
    ann_parser.add_argument("annotations", nargs="*", metavar="KEY=VALUE")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entrypoint for kptedit."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging
    if getattr(args, "verbose", False):
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")

    handlers = {
        "show": cmd_show,
        "set-condition": cmd_set_condition,
        "delete-condition": cmd_delete_condition,
        "ensure-gates": cmd_ensure_gates,
        "upsert-function": cmd_upsert_function,
        "set-labels": cmd_set_labels,
        "set-annotations": cmd_set_annotations,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except (KptfileError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.exception(f"Command {args.command} failed")
        return 1


def _edit(args, edit) -> int:
    """Load the package Kptfile, apply ``edit`` to it and write it back."""
    package = KptPackage.from_dir(args.package)
    kptfile = package.kptfile()
    edit(kptfile)
    package.with_kptfile(kptfile).write_to_dir(args.package, only=[KPTFILE_NAME])
    logger.info(f"Updated {args.package}/{KPTFILE_NAME}")
    return 0


def cmd_show(args) -> int:
    """Handle show command."""
    package = KptPackage.from_dir(args.package)
    print(package.kptfile().to_string(), end="")
    return 0


def cmd_set_condition(args) -> int:
    """Handle set-condition command."""
    condition = Condition(
        type=args.type,
        status=ConditionStatus(args.status),
        reason=args.reason,
        message=args.message,
    )
    if args.default:
        return _edit(args, lambda kf: kf.apply_default_condition(condition))
    return _edit(args, lambda kf: kf.set_typed_condition(condition))


def cmd_delete_condition(args) -> int:
    """Handle delete-condition command."""
    return _edit(args, lambda kf: kf.delete_condition_by_type(args.type))


def cmd_ensure_gates(args) -> int:
    """Handle ensure-gates command."""
    gates = [ReadinessGate(condition_type=t) for t in args.condition_types]
    return _edit(args, lambda kf: kf.ensure_readiness_gates(gates))


def cmd_upsert_function(args) -> int:
    """Handle upsert-function command."""
    position = args.position
    if position is None:
        position = get_int_config_value(["pipeline", "insert_position"], -1)

    function = Function(
        image=args.image,
        name=args.name,
        config_map=parse_key_values(args.config),
    )
    return _edit(
        args, lambda kf: kf.upsert_pipeline_functions([function], args.section, position)
    )


def cmd_set_labels(args) -> int:
    """Handle set-labels command."""
    labels = parse_key_values(args.labels)
    return _edit(args, lambda kf: kf.set_labels(labels))


def cmd_set_annotations(args) -> int:
    """Handle set-annotations command."""
    annotations = parse_key_values(args.annotations)
    return _edit(args, lambda kf: kf.set_annotations(annotations))


if __name__ == "__main__":
    sys.exit(main())
