"""Headless run of the full workflow for one floor plan.

    python -m roomify.runner plan.png --out render.png

Uses mock clients unless USE_MOCK_CLIENTS=false.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

import structlog

from roomify.config import settings
from roomify.containers import build_session
from roomify.logging import configure_logging
from roomify.models.contracts import SelectedFile
from roomify.utils.image import decode_data_uri

logger = structlog.get_logger()


async def run_once(plan_path: Path, out_path: Path | None) -> int:
    session = build_session()
    try:
        intake = session.intake(is_signed_in=lambda: True)
        intake.subscribe(
            lambda view: logger.debug("intake_view", progress=view.progress, status=view.status)
        )
        intake.submit(SelectedFile.from_path(plan_path))
        await intake.wait()

        if not session.routes:
            logger.error("runner_no_project_created", plan=str(plan_path))
            return 1

        project_id = session.routes[-1].rsplit("/", 1)[-1]
        visualizer = session.visualizer()
        visualizer.activate(project_id)
        await visualizer.wait()
        view = visualizer.view
        logger.info("runner_render_finished", project_id=project_id, phase=view.phase)

        if view.rendered_image is None:
            return 1
        if out_path is not None:
            _, data = decode_data_uri(view.rendered_image)
            out_path.write_bytes(data)
            logger.info("runner_render_saved", path=str(out_path), size_bytes=len(data))
        return 0
    finally:
        await session.close()


def main(argv: list[str] | None = None) -> None:
    """Entrypoint for `python -m roomify.runner`."""
    parser = argparse.ArgumentParser(description="Render a floor plan end to end.")
    parser.add_argument("plan", type=Path, help="JPG or PNG floor plan")
    parser.add_argument("--out", type=Path, default=None, help="Where to save the render")
    args = parser.parse_args(argv)

    configure_logging()
    if settings.use_mock_clients and settings.environment != "development":
        logger.warning(
            "runner_using_mock_clients",
            environment=settings.environment,
            hint="Set USE_MOCK_CLIENTS=false for real persistence and generation",
        )
    try:
        code = asyncio.run(run_once(args.plan, args.out))
    except KeyboardInterrupt:
        code = 130
    except Exception:
        logger.exception("runner_fatal_error")
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
