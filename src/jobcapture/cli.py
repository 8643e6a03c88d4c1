"""
Job Capture Agent - Command line entry point
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from jobcapture.config_loader import DEFAULT_CONFIG_PATH, ConfigLoader, load_config
from jobcapture.control import ControlSurface, SettingsStore
from jobcapture.document import HtmlDocument
from jobcapture.extractors import extractor_for_url
from jobcapture.fallback import FallbackQueue
from jobcapture.metrics import CaptureMetrics
from jobcapture.relay import Relay
from jobcapture.transport import HttpTransport

logger = logging.getLogger(__name__)


def setup_logging(config: ConfigLoader) -> None:
    """Configure logging for the application"""
    log_file = config.get_log_file()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    log_level = getattr(logging, config.get_log_level(), logging.INFO)

    # StreamHandler writes to stderr, which keeps stdout clean for native messaging
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

    logger.info(f"Logging initialized: {log_file}")


def build_control(config: ConfigLoader) -> ControlSurface:
    """Settings gate + relay wired from config"""
    transport = HttpTransport(
        config.get_relay_endpoint(),
        timeout=config.get_relay_timeout(),
        ping_timeout=config.get_ping_timeout(),
    )
    queue = FallbackQueue(config.get_fallback_path(), config.get_fallback_max_size())
    relay = Relay(transport, queue, timeout=config.get_relay_timeout())
    return ControlSurface(SettingsStore(config.get_settings_path()), relay)


def display_config(config: ConfigLoader, control: ControlSurface) -> None:
    print("\n" + "="*60)
    print("🤖 JOB CAPTURE AGENT")
    print("="*60)
    print(f"\n🔗 Desktop app: {config.get_relay_endpoint()}")
    print(f"⏱  Capture delays: {config.get_initial_delay()}s first, {config.get_retry_delay()}s retry "
          f"(max {config.get_max_retries()} retries)")
    print(f"💾 Fallback queue: {config.get_fallback_path()} ({control.pending_count()} pending)")
    print(f"⚙️  Auto-capture: {'ON' if control.enabled else 'OFF'}")
    print("\n" + "="*60 + "\n")


def cmd_watch(config: ConfigLoader, args: argparse.Namespace) -> int:
    from playwright.sync_api import Error as PlaywrightError
    from playwright.sync_api import sync_playwright

    from jobcapture.agent import CaptureAgent
    from jobcapture.document import PageDocument
    from jobcapture.notify import PageNotifier

    control = build_control(config)
    display_config(config, control)
    metrics = CaptureMetrics()

    user_data_dir = config.get_user_data_dir()
    user_data_dir.mkdir(parents=True, exist_ok=True)

    with sync_playwright() as p:
        context = p.chromium.launch_persistent_context(
            user_data_dir=str(user_data_dir),
            headless=config.is_headless(),
            viewport={"width": 1280, "height": 800},
            args=[
                "--disable-blink-features=AutomationControlled",
                "--disable-dev-shm-usage",
            ],
            channel=config.get_browser_channel() or None,
        )
        page = context.pages[0] if context.pages else context.new_page()

        agent = CaptureAgent(
            PageDocument(page),
            control,
            notifier=PageNotifier(page),
            config=config,
            metrics=metrics,
        )
        agent.start()
        if args.url:
            page.goto(args.url)

        print("👀 Watching for job postings. Close the browser or press Ctrl-C to stop.")
        try:
            while not page.is_closed():
                page.wait_for_timeout(agent.pump() * 1000)
        except KeyboardInterrupt:
            print("\n⏹  Stopping...")
        except PlaywrightError as exc:
            # Closing the window mid-wait surfaces as a Playwright error
            logger.info("Browser closed: %s", exc)
        finally:
            agent.stop()
            control.relay.shutdown()
            try:
                context.close()
            except PlaywrightError:
                pass

    path = metrics.write_json(template=config.get_metrics_template())
    print(f"\n📊 {metrics.summary_line()}")
    print(f"📁 Metrics: {path}")
    return 0


def cmd_extract(config: ConfigLoader, args: argparse.Namespace) -> int:
    extractor = extractor_for_url(args.url)
    if extractor is None:
        print(f"❌ Unsupported site: {args.url}", file=sys.stderr)
        return 1

    document = HtmlDocument.from_file(args.file, args.url)
    record = extractor.extract(document)
    if record is None:
        print("❌ Not a capturable posting (content not ready or required fields missing)", file=sys.stderr)
        return 1

    print(json.dumps(record.to_wire(), indent=2))
    return 0


def cmd_status(config: ConfigLoader, args: argparse.Namespace) -> int:
    control = build_control(config)
    status = control.status()
    status["pending"] = control.pending_count()
    print(json.dumps(status))
    return 0


def cmd_toggle(config: ConfigLoader, args: argparse.Namespace) -> int:
    control = build_control(config)
    print(json.dumps({"enabled": control.toggle()}))
    return 0


def cmd_queue(config: ConfigLoader, args: argparse.Namespace) -> int:
    queue = FallbackQueue(config.get_fallback_path(), config.get_fallback_max_size())
    entries = queue.drain() if args.drain else queue.entries()
    payload = json.dumps(entries, indent=2)

    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(payload, encoding="utf-8")
        print(f"📁 Wrote {len(entries)} queued job(s) to {output}")
    else:
        print(payload)

    if args.drain:
        logger.info("Drained %d job(s) from the fallback queue", len(entries))
    return 0


def cmd_native_host(config: ConfigLoader, args: argparse.Namespace) -> int:
    from jobcapture.native_host import run_host

    transport = HttpTransport(
        config.get_relay_endpoint(),
        timeout=config.get_relay_timeout(),
        ping_timeout=config.get_ping_timeout(),
    )
    run_host(sys.stdin.buffer, sys.stdout.buffer, transport)
    return 0


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="jobcapture", description="Job Capture Agent")
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to config YAML (default: {DEFAULT_CONFIG_PATH} when present, else built-in defaults)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    watch = sub.add_parser("watch", help="Open a browser and capture postings as you browse")
    watch.add_argument("--url", help="Page to open first")
    watch.set_defaults(func=cmd_watch)

    extract = sub.add_parser("extract", help="Extract one posting from a saved HTML snapshot")
    extract.add_argument("file", help="Saved HTML file")
    extract.add_argument("--url", required=True, help="URL the snapshot was taken from")
    extract.set_defaults(func=cmd_extract)

    sub.add_parser("status", help="Show the enable flag and desktop app connectivity").set_defaults(func=cmd_status)
    sub.add_parser("toggle", help="Flip auto-capture on or off").set_defaults(func=cmd_toggle)

    queue = sub.add_parser("queue", help="Show or export the fallback queue")
    queue.add_argument("--drain", action="store_true", help="Empty the queue after reading it")
    queue.add_argument("--output", help="Write entries to this file instead of stdout")
    queue.set_defaults(func=cmd_queue)

    sub.add_parser("native-host", help="Serve browser native messaging on stdin/stdout").set_defaults(
        func=cmd_native_host
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main execution function"""
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    args = parse_args(argv)

    config_path = args.config
    if config_path is None and Path(DEFAULT_CONFIG_PATH).exists():
        config_path = DEFAULT_CONFIG_PATH

    try:
        config = load_config(config_path)
    except FileNotFoundError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"❌ Error loading config: {e}", file=sys.stderr)
        return 1

    setup_logging(config)
    return args.func(config, args)


if __name__ == "__main__":
    sys.exit(main())
