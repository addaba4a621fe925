"""
Command-line interface.

  scriptrecorder record URL      record interactions in a browser window
  scriptrecorder compile LOG     compile a recorded action log into a script
  scriptrecorder show LOG        list the actions of a recorded log
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from scriptrecorder.compiler.synthesizer import ScriptSynthesizer
from scriptrecorder.config import RecorderConfig, load_config_from_env
from scriptrecorder.core.action_log import ActionLog, ActionLogError

logger = logging.getLogger(__name__)

app = typer.Typer(
    help=(
        "scriptrecorder: turn recorded page interactions into Playwright scripts\n\n"
        "  1. scriptrecorder record https://example.com -o actions.json\n"
        "  2. scriptrecorder compile actions.json -o workflow.py"
    ),
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_log(path: Path) -> ActionLog:
    try:
        return ActionLog.from_json(path.read_text(encoding="utf-8"))
    except OSError as exc:
        typer.echo(f"Error: cannot read {path}: {exc}", err=True)
        raise typer.Exit(code=1)
    except ActionLogError as exc:
        typer.echo(f"Error: {path} is not a valid action log: {exc}", err=True)
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# compile
# ---------------------------------------------------------------------------

@app.command("compile")
def compile_command(
    log_path: Path = typer.Argument(..., help="Action log JSON file."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Script path (default: print to stdout)."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="URL the script opens first (default: the recorded one)."
    ),
    wait_timeout: Optional[int] = typer.Option(
        None, "--wait-timeout", min=1, help="Element wait in milliseconds."
    ),
    max_pages: Optional[int] = typer.Option(
        None, "--max-pages", min=1, help="Pagination limit per table loop."
    ),
    headless: bool = typer.Option(False, "--headless", help="Generated script runs headless."),
) -> None:
    """Compile a recorded action log into a standalone Playwright script."""
    config = load_config_from_env()
    if wait_timeout is not None:
        config.wait_timeout_ms = wait_timeout
    if max_pages is not None:
        config.max_pages = max_pages
    if headless:
        config.headless = True

    log = _load_log(log_path)
    source = ScriptSynthesizer(config).compile(log, base_url=base_url)

    if output is None:
        typer.echo(source, nl=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(source, encoding="utf-8")
    typer.echo(f"Wrote {output} ({len(log)} actions)")


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------

@app.command("show")
def show_command(
    log_path: Path = typer.Argument(..., help="Action log JSON file."),
) -> None:
    """List the actions of a recorded log."""
    log = _load_log(log_path)
    if log.base_url:
        typer.echo(f"base url: {log.base_url}")
    if not len(log):
        typer.echo("No actions recorded.")
        return
    for index, action in enumerate(log):
        line = f"{index:3d}  {action.kind.value:<20}  {action.locator}"
        if action.label is not None:
            line += f"  [{action.label}]"
        if action.value is not None:
            line += f"  = {action.value!r}"
        typer.echo(line)


# ---------------------------------------------------------------------------
# record
# ---------------------------------------------------------------------------

async def _record(url: str, config: RecorderConfig, store_dir: Optional[Path]) -> ActionLog:
    from playwright.async_api import async_playwright

    from scriptrecorder.capture.bridge import PageBridge
    from scriptrecorder.capture.session import RecordingSession
    from scriptrecorder.capture.store import JsonActionStore, MemoryActionStore

    store = JsonActionStore(str(store_dir)) if store_dir else MemoryActionStore()
    session = RecordingSession(config, store=store)

    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=config.headless)
        try:
            page = await browser.new_page()
            await PageBridge(session).attach(page)
            await session.start(base_url=url)
            await page.goto(url)
            typer.echo(
                "Recording. F2 toggles the table loop, F3 skips pagination, Control\n"
                "arms field labels and F4 names the pinned field. Close the tab to finish."
            )
            await page.wait_for_event("close", timeout=0)
        finally:
            await session.stop()
            await browser.close()

    return ActionLog(session.get_actions(), base_url=session.log.base_url or url)


@app.command("record")
def record_command(
    url: str = typer.Argument(..., help="Page to open."),
    output: Path = typer.Option(
        Path("actions.json"), "--output", "-o", help="Where to write the action log."
    ),
    store_dir: Optional[Path] = typer.Option(
        None, "--store-dir", help="Also persist actions to this directory while recording."
    ),
) -> None:
    """Open a browser on URL and record interactions until the tab is closed."""
    config = load_config_from_env()
    try:
        log = asyncio.run(_record(url, config, store_dir))
    except Exception as exc:
        logger.debug("Recording failed", exc_info=True)
        typer.echo(f"Error: recording failed: {exc}", err=True)
        raise typer.Exit(code=1)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(log.to_json(), encoding="utf-8")
    typer.echo(f"Recorded {len(log)} actions to {output}")


if __name__ == "__main__":
    app()
