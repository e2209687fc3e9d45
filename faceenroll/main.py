"""
Face Enrollment - Main Entry Point

Explicit bootstrap (logging, settings, person group validation) and a
command-line runner that feeds frames from a directory to the enrollment
workflow.

Usage:
    faceenroll enroll --username alice --frames ./frames
    faceenroll enroll --username alice --frames ./frames --person-id <old pid>
    faceenroll delete --person-id <pid>
    faceenroll train-status
    faceenroll reset-group
"""

import argparse
import asyncio
import sys
from itertools import cycle
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from faceenroll.core.config import Settings, get_settings, VERSION
from faceenroll.core.exceptions import AppException, ConfigurationError
from faceenroll.core.logging import configure_from_settings, get_logger
from faceenroll.services.enrollment_service import EnrollmentService
from faceenroll.services.face_api import FaceApiService
from faceenroll.services.quality_filters import QualityFilter

logger = get_logger(__name__)

IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".bmp"}


class Application:
    """Service instances created by bootstrap()."""

    def __init__(self, settings: Settings, face_api: FaceApiService, enrollment: EnrollmentService):
        self.settings = settings
        self.face_api = face_api
        self.enrollment = enrollment

    async def aclose(self):
        await self.face_api.aclose()


async def bootstrap(settings: Optional[Settings] = None, validate: bool = True) -> Application:
    """
    Create service instances and validate the person group.

    Raises:
        ConfigurationError: the person group could not be validated
    """
    settings = settings or get_settings()
    configure_from_settings(settings)
    logger.info(f"Starting Face Enrollment v{VERSION}")

    face_api = FaceApiService.from_settings(settings)
    enrollment = EnrollmentService(
        face_api,
        settings.enroll_settings(),
        quality_filter=QualityFilter(settings.quality_thresholds()),
    )
    app = Application(settings, face_api, enrollment)

    if validate:
        try:
            validated = await enrollment.validate_person_group()
        except AppException:
            await app.aclose()
            raise
        if not validated:
            await app.aclose()
            raise ConfigurationError(
                f"Person group {settings.person_group_id} could not be validated",
                setting="PERSONGROUP_RGB",
            )

    logger.info("✓ Services ready")
    return app


class DirectoryCapture:
    """Capture provider that replays image files from a directory in a loop."""

    def __init__(self, directory: Path):
        self.files: List[Path] = sorted(
            p for p in directory.iterdir() if p.suffix.lower() in IMAGE_SUFFIXES
        )
        self._frames = cycle(self.files) if self.files else None

    async def take_picture(self) -> Optional[bytes]:
        if self._frames is None:
            return None
        path = next(self._frames)
        return await asyncio.to_thread(path.read_bytes)


# ============================================================
# Commands
# ============================================================

async def cmd_enroll(app: Application, args) -> int:
    frames_dir = Path(args.frames)
    if not frames_dir.is_dir():
        print(f"✗ Not a directory: {frames_dir}")
        return 2

    capture = DirectoryCapture(frames_dir)
    logger.info(f"Replaying {len(capture.files)} frame(s) from {frames_dir}")

    result, record = await app.enrollment.enroll(
        args.username,
        capture.take_picture,
        existing_person_id=args.person_id,
        on_progress=lambda count: print(f"  progress: {count}"),
    )
    print(f"Result: {result.value}")
    if record.person_id:
        print(f"Person: {record.person_id}")
    return 0 if result.succeeded else 1


async def cmd_delete(app: Application, args) -> int:
    deleted = await app.face_api.delete_person(app.settings.person_group_id, args.person_id)
    print("✓ Deleted" if deleted else "Person was not found")
    return 0


async def cmd_train_status(app: Application, args) -> int:
    status = await app.face_api.get_training_status(app.settings.person_group_id)
    print(f"Training status: {status}")
    return 0


async def cmd_reset_group(app: Application, args) -> int:
    deleted = await app.face_api.delete_person_group(app.settings.person_group_id)
    print("✓ Person group deleted" if deleted else "✗ Person group not deleted")
    return 0 if deleted else 1


COMMANDS = {
    "enroll": cmd_enroll,
    "delete": cmd_delete,
    "train-status": cmd_train_status,
    "reset-group": cmd_reset_group,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="faceenroll", description="Face enrollment reference client")
    parser.add_argument("--env-file", default=None, help="Load settings from this .env file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    sub = parser.add_subparsers(dest="command", required=True)

    enroll = sub.add_parser("enroll", help="Enroll and verify a user from a directory of frames")
    enroll.add_argument("--username", required=True)
    enroll.add_argument("--frames", required=True, help="Directory of captured frames")
    enroll.add_argument("--person-id", default=None, help="Existing person id when re-enrolling")

    delete = sub.add_parser("delete", help="Delete a person from the group")
    delete.add_argument("--person-id", required=True)

    sub.add_parser("train-status", help="Show person group training status")
    sub.add_parser("reset-group", help="Delete the whole person group")
    return parser


async def run(args) -> int:
    # Only enrollment needs the group to exist; it is created if missing
    app = await bootstrap(validate=args.command == "enroll")
    try:
        return await COMMANDS[args.command](app, args)
    except AppException as e:
        logger.error(f"[CLI] {args.command} failed: {e.to_dict()}")
        return 1
    finally:
        await app.aclose()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    load_dotenv(args.env_file)
    try:
        return asyncio.run(run(args))
    except AppException as e:
        print(f"✗ {e.message}")
        return 1
    except ValidationError as e:
        print(f"✗ Invalid settings: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
