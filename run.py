# -*- coding: utf-8 -*-

"""
Command-line entry point for rendering a lesson with Lesson Toolkit.

Loads the lesson sections, renders them to HTML and writes the result.
With ``--watch`` the lesson file is watched and the output rewritten on
every change until interrupted.
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from lesson_toolkit.core.importers.section_loader import LoaderConfig
from lesson_toolkit.core.services.host_channel import HostChannel, NullHostChannel, StreamHostChannel
from lesson_toolkit.core.services.render_service import RenderResult
from lesson_toolkit.logging_config import setup_logging
from lesson_toolkit.ui.controllers import LessonController
from lesson_toolkit.version import get_app_version

logger = logging.getLogger("lesson_toolkit.run")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lesson-toolkit", description="Render a lesson section tree to HTML.")
    parser.add_argument("lesson", nargs="?", help="Lesson XML file (defaults to the configured path)")
    parser.add_argument("-o", "--output", help="HTML output file (stdout when omitted)")
    parser.add_argument("--reorderable", action="store_true", help="Lay sections out in a drag-reorder region")
    parser.add_argument("--preview", action="store_true", help="Render in preview mode (no editing controls)")
    parser.add_argument("--watch", action="store_true", default=None, help="Re-render when the lesson file changes")
    parser.add_argument(
        "--host-fd",
        type=int,
        help="File descriptor receiving host notifications as JSON lines (discarded when omitted)",
    )
    parser.add_argument("--version", action="version", version=get_app_version())
    return parser


def _host_channel(fd: int | None) -> HostChannel:
    if fd is None:
        return NullHostChannel()
    return StreamHostChannel(os.fdopen(fd, "w", encoding="utf-8", closefd=False))


def _writer(output: str | None):
    def write(result: RenderResult) -> None:
        html_text = result.to_html()
        if output:
            Path(output).write_text(html_text, encoding="utf-8")
            logger.info("Wrote %d sections to %s", len(result.items), output)
        else:
            sys.stdout.write(html_text)
            sys.stdout.flush()

    return write


async def _run(args: argparse.Namespace) -> int:
    config = LoaderConfig.from_settings(path=args.lesson, watch=args.watch)
    controller = LessonController(
        config,
        host=_host_channel(args.host_fd),
        is_preview=args.preview,
        reorderable=args.reorderable,
        on_render=_writer(args.output),
    )
    await controller.start()
    if controller.is_empty:
        logger.warning("Lesson %s has no sections", config.path)
    if not controller.watching:
        controller.close()
        return 0
    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        controller.close()


def main(argv=None) -> int:
    """
    Configure logging, parse arguments and render the lesson.
    """
    args = _build_parser().parse_args(argv)
    setup_logging()
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        logging.info("===== Watch interrupted =====")
        return 0


if __name__ == '__main__':
    sys.exit(main())
