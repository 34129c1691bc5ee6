import argparse
from pathlib import Path
from typing import Callable, Optional

from disk_utils import __version__
from disk_utils.actions.context import ActionContext
from disk_utils.actions.drives import erase_drive, format_drive, image_drive
from disk_utils.actions.log_actions import view_logs
from disk_utils.audit import AuditLog, open_audit_log
from disk_utils.config import settings
from disk_utils.logging import setup_logging
from disk_utils.services.preflight import check_capabilities
from disk_utils.services.workflow import DiskWorkflow
from disk_utils.storage.device_info import DeviceInfo
from disk_utils.storage.devices import LsblkInventory
from disk_utils.storage.exceptions import AuditLogUnavailableError
from disk_utils.ui import console


EXIT_OK = 0
EXIT_FAILURE = 1

MENU_TITLE = "Main Menu"
MENU_ITEMS: list[tuple[str, Optional[Callable[..., None]]]] = [
    ("Image Disk", image_drive),
    ("Securely Erase Disk", erase_drive),
    ("Format Disk", format_drive),
    ("View Logs", view_logs),
    ("Exit", None),
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="disk-utils",
        description="Image, securely erase and format whole disks",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable verbose debug output")
    parser.add_argument("--trace", action="store_true", help="Enable very verbose trace output")
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help=f"Audit log file (default: {settings.DEFAULT_AUDIT_LOG_PATH})",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def build_context(audit: AuditLog, capabilities) -> ActionContext:
    inventory = LsblkInventory()
    workflow = DiskWorkflow(
        audit=audit,
        capabilities=capabilities,
        device_info=DeviceInfo(inventory=inventory),
    )
    return ActionContext(workflow=workflow, audit=audit, inventory=inventory)


def run_menu(context: ActionContext) -> int:
    labels = [label for label, _ in MENU_ITEMS]
    while True:
        console.show_menu(MENU_TITLE, labels)
        try:
            answer = console.ask(f"Choose an option (1-{len(labels)}): ").strip()
        except EOFError:
            answer = str(len(labels))
        if not answer.isdigit() or not 1 <= int(answer) <= len(labels):
            console.error("Invalid option!")
            continue
        _, action = MENU_ITEMS[int(answer) - 1]
        if action is None:
            context.audit.info("Exiting the script.")
            return EXIT_OK
        action(context=context)


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(debug=args.debug, trace=args.trace)

    log_path = args.log_file or settings.get_audit_log_path()
    try:
        audit = open_audit_log(log_path)
    except AuditLogUnavailableError as error:
        console.error(str(error))
        return EXIT_FAILURE

    try:
        return run(audit)
    finally:
        audit.sink.close()


def run(audit: AuditLog) -> int:
    capabilities = check_capabilities()
    if not capabilities.ok:
        for problem in capabilities.problems():
            audit.error(problem)
            console.error(problem)
        return EXIT_FAILURE

    console.show_banner(__version__)
    audit.info("Script started.")
    context = build_context(audit, capabilities)
    try:
        return run_menu(context)
    except KeyboardInterrupt:
        console.console.print()
        audit.warning("Script interrupted by user")
        console.warning("Script interrupted by user")
        return EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
