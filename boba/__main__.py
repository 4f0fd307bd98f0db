"""Entry point for boba."""

import logging
import os
import signal
import sys
from pathlib import Path


def setup_logging(log_dir):
    """Send log records to ``<log_dir>/boba.log``, away from the terminal."""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    level = os.environ.get("BOBA_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        filename=str(log_dir / "boba.log"),
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def print_help():
    print("Boba - interactive MySQL client")
    print()
    print("Usage: boba [options]")
    print()
    print("Options:")
    print("  --db PATH        Settings/connection store (default ~/.boba/boba.db)")
    print("  --use NAME       Start from a saved connection instead of the last one")
    print("  --connections    List saved connections")
    print("  --forget NAME    Delete a saved connection")
    print("  --log [N]        Show the last N logged queries (default 20, --use filters)")
    print("  --version        Show the version")
    print("  --help, -h       Show this help message")
    print()
    print("Connection fields come from BOBA_HOST, BOBA_PORT, BOBA_USER,")
    print("BOBA_PASSWORD and BOBA_DATABASE, then the saved connection.")


def print_connections(store):
    connections = store.get_connections()
    if not connections:
        print("No saved connections.")
        return
    for conn in connections:
        print(f"  {conn['name']}")


def print_query_log(store, limit=20, connection_name=None):
    from boba.formatter import ASCII_STYLE, render_table

    logs = store.get_query_log(connection_name, limit=limit)
    if not logs:
        print("Query log is empty.")
        return
    columns = ["executed_at", "status", "duration", "rows", "connection", "sql", "error"]
    rows = []
    for log in logs:
        duration = log.get('duration')
        row_count = log.get('row_count')
        rows.append([
            str(log.get('executed_at', '')),
            log.get('status', ''),
            f"{duration:.3f}s" if duration else "",
            str(row_count) if row_count is not None else "",
            log.get('connection_name') or "",
            log.get('sql', ''),
            log.get('error_message') or "",
        ])
    print(render_table(columns, rows, ASCII_STYLE))


def main(argv=None):
    """Main entry point with argument handling."""
    args = list(sys.argv[1:] if argv is None else argv)
    db_path = None
    use_name = None
    action = None

    while args:
        arg = args.pop(0)
        if arg in ("--help", "-h"):
            print_help()
            sys.exit(0)
        elif arg == "--version":
            from boba import __version__
            print(f"boba {__version__}")
            sys.exit(0)
        elif arg == "--db" and args:
            db_path = args.pop(0)
        elif arg.startswith("--db="):
            db_path = arg.split("=", 1)[1]
        elif arg == "--use" and args:
            use_name = args.pop(0)
        elif arg == "--connections":
            action = ("connections",)
        elif arg == "--forget" and args:
            action = ("forget", args.pop(0))
        elif arg == "--log":
            limit = int(args.pop(0)) if args and args[0].isdigit() else 20
            action = ("log", limit)
        else:
            print(f"Unknown option: {arg}", file=sys.stderr)
            print_help()
            sys.exit(2)

    from boba.config import ConnectionConfig, SessionSettings
    from boba.database import Store

    store = Store(db_path)

    if action is not None:
        if action[0] == "connections":
            print_connections(store)
        elif action[0] == "forget":
            if store.get_connection(action[1]) is None:
                print(f"No saved connection named {action[1]}", file=sys.stderr)
                sys.exit(1)
            store.delete_connection(action[1])
            print(f"Deleted {action[1]}")
        elif action[0] == "log":
            print_query_log(store, action[1], use_name)
        sys.exit(0)

    if use_name is not None:
        saved = store.get_connection(use_name)
        if saved is None:
            print(f"No saved connection named {use_name}", file=sys.stderr)
            sys.exit(1)
    else:
        saved = store.get_last_connection()

    from PyQt6.QtCore import QCoreApplication, QTimer

    from boba.adapters import get_adapter, get_unavailable_adapters
    from boba.session import SessionController
    from boba.terminal import TerminalApp, theme_for

    for db_type, display_name, hint in get_unavailable_adapters():
        print(f"{display_name} driver not installed: {hint}", file=sys.stderr)
        sys.exit(1)

    setup_logging(store.db_path.parent)

    settings = SessionSettings.load(store)
    if store.get_setting("rows_per_page") is None:
        # First run: store the defaults
        settings.save(store)
    base = ConnectionConfig.from_saved(saved) if saved else ConnectionConfig()
    config = ConnectionConfig.from_env(base=base)

    app = QCoreApplication(sys.argv[:1])
    controller = SessionController(get_adapter("mysql"), store=store,
                                   settings=settings, config=config)
    terminal = TerminalApp(controller, theme_for(settings.dark_mode))
    terminal.start()

    # Ctrl+C quits cleanly; the timer hands control back to Python so the handler can run.
    signal.signal(signal.SIGINT, lambda *_: controller.quit())
    heartbeat = QTimer()
    heartbeat.timeout.connect(lambda: None)
    heartbeat.start(250)

    code = app.exec()
    if controller.runner.is_running():
        # The database thread is still inside a statement; a running QThread
        # must not be destroyed.
        logging.shutdown()
        sys.stdout.flush()
        os._exit(code)
    sys.exit(code)


if __name__ == "__main__":
    main()
