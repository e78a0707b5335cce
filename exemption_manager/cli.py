"""Command-line entry point for the exemption manager.

Usage:
    exemption-manager (--subscription ID | --management-group ID) [options]

Exit Codes:
    0   Success, or nothing to do
    1   Invalid arguments, no baseline assignment, unknown assignment name,
        or exemption quota would be exceeded
    2   Unexpected internal error or interrupted run

Examples:
    # List tagged resources and baseline assignments in a subscription
    exemption-manager --subscription 00000000-0000-0000-0000-000000000000 --list-only

    # Create Waiver exemptions across a management group
    exemption-manager --management-group contoso-root --create-exemptions --category Waiver

    # Audit baseline coverage of every subscription under a management group
    exemption-manager --management-group contoso-root --check-coverage
"""

import argparse
import logging
import sys

from exemption_manager.core.config import Settings, get_settings
from exemption_manager.core.exceptions import (
    ExemptionManagerError,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from exemption_manager.reports import ReportGenerator
from exemption_manager.runner import ExemptionRunner
from exemption_manager.schemas import BatchConfig, ExemptionCategory, RunRequest

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERNAL_ERROR = 2


class ArgumentParser(argparse.ArgumentParser):
    """Argument parser reporting invalid arguments as ValidationError."""

    def error(self, message: str):
        raise ValidationError(f"{self.prog}: {message}")


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    """Build the argument parser with defaults taken from settings."""
    parser = ArgumentParser(
        prog="exemption-manager",
        description="Reconcile MCSB policy exemptions for tagged Azure resources",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    # Exclusivity is checked by the runner so a conflict exits with status 1
    parser.add_argument("--subscription", help="Target subscription id")
    parser.add_argument("--management-group", help="Target management group id")

    parser.add_argument(
        "--tag-name",
        default=settings.tag_name,
        help=f"Tag marking resources for exemption (default: {settings.tag_name})",
    )
    parser.add_argument(
        "--tag-value",
        default=settings.tag_value,
        help=f"Tag value marking resources for exemption (default: {settings.tag_value})",
    )
    parser.add_argument(
        "--category",
        choices=[c.value for c in ExemptionCategory],
        default=settings.default_category,
        help=f"Exemption category (default: {settings.default_category})",
    )
    parser.add_argument(
        "--expires-in-days",
        type=int,
        help=(
            f"Exemption validity in days (default: {settings.waiver_expiry_days} for Waiver, "
            f"{settings.mitigated_expiry_days} for Mitigated)"
        ),
    )

    parser.add_argument("--list-only", action="store_true", help="Only list what would be exempted")
    parser.add_argument(
        "--create-exemptions", action="store_true", help="Create missing exemptions"
    )
    parser.add_argument(
        "--check-coverage", action="store_true", help="Audit baseline coverage per subscription"
    )
    parser.add_argument(
        "--include-child-subscriptions",
        action="store_true",
        help="Also query policy assignments of each child subscription",
    )
    parser.add_argument(
        "--assignment-name", help="Only exempt from the baseline assignment with this name"
    )

    parser.add_argument(
        "--batch-size",
        type=int,
        default=settings.batch_size,
        help=f"Resources per batch (default: {settings.batch_size})",
    )
    parser.add_argument(
        "--batch-delay",
        type=float,
        default=settings.batch_delay_seconds,
        help=f"Seconds to pause between batches (default: {settings.batch_delay_seconds})",
    )
    parser.add_argument(
        "--call-delay",
        type=float,
        default=settings.call_delay_seconds,
        help=f"Seconds to pause after each creation (default: {settings.call_delay_seconds})",
    )

    parser.add_argument("--json", action="store_true", help="Output results in JSON format")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser


def build_request(args: argparse.Namespace) -> RunRequest:
    """Convert parsed arguments into a run request.

    Raises:
        ValidationError: If numeric options are out of range
    """
    if args.expires_in_days is not None and args.expires_in_days < 1:
        raise ValidationError("--expires-in-days must be at least 1")
    if args.batch_size < 1:
        raise ValidationError("--batch-size must be at least 1")
    if args.batch_delay < 0 or args.call_delay < 0:
        raise ValidationError("Delays cannot be negative")

    return RunRequest(
        subscription_id=args.subscription,
        management_group_id=args.management_group,
        tag_name=args.tag_name,
        tag_value=args.tag_value,
        category=ExemptionCategory(args.category),
        expires_in_days=args.expires_in_days,
        list_only=args.list_only,
        create_exemptions=args.create_exemptions,
        check_coverage=args.check_coverage,
        include_child_subscriptions=args.include_child_subscriptions,
        assignment_name=args.assignment_name,
        batch_config=BatchConfig(
            batch_size=args.batch_size,
            batch_delay_seconds=args.batch_delay,
            call_delay_seconds=args.call_delay,
        ),
    )


def main(argv: list[str] | None = None, runner: ExemptionRunner | None = None) -> int:
    """Main entry point."""
    settings = get_settings()
    parser = build_parser(settings)
    try:
        args = parser.parse_args(argv)
    except ValidationError as e:
        parser.print_usage(sys.stderr)
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_FAILURE

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        request = build_request(args)
        runner = runner or ExemptionRunner.from_settings(settings)
        outcome = runner.run(request)

    except QuotaExceededError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        print("No exemptions were created.", file=sys.stderr)
        return EXIT_FAILURE

    except (ValidationError, NotFoundError) as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_FAILURE

    except ExemptionManagerError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_FAILURE

    except KeyboardInterrupt:
        print("\nRun interrupted; re-run to resume, existing exemptions are skipped", file=sys.stderr)
        return EXIT_INTERNAL_ERROR

    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=args.verbose)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INTERNAL_ERROR

    report = ReportGenerator(outcome)
    print(report.to_json() if args.json else report.to_text())
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
