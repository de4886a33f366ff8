import asyncio
import logging
import re
from io import BytesIO
from pathlib import Path

import pytest
from starlette.datastructures import FormData, Headers, UploadFile

from tests.mocks.pipeline import (
    MP4_BYTES,
    OTHER_USER_ID,
    OWNER_ID,
    FakeToolkit,
    RecordingUploader,
    build_config,
    failing_remux,
    failing_upload,
    unreadable_upload,
)
from tubely.dependencies import build_upload_service
from tubely.exceptions import DatabaseOperationError
from tubely.ingest.ingest_errors import (
    InvalidVideoIdError,
    MissingUploadError,
    NotOwnerError,
    PersistFailedError,
    ProbeFailedError,
    RemuxFailedError,
    StagingFailedError,
    UnsupportedMediaError,
    UploadFailedError,
    VideoNotFoundError,
)
from tubely.ingest.ingest_models import ProbeResult, UploadStage
from tubely.ingest.ingest_service import UploadService, parse_video_id, upload_from_form
from tubely.repositories.video_repository import VideoRepository
from tubely.videos.video_models import Video

URL_PATTERN = re.compile(
    r"^https://tubely-test\.s3\.us-east-2\.amazonaws\.com/(landscape|portrait|other)/[0-9a-f]{64}\.mp4$"
)


def make_upload(data: bytes = MP4_BYTES, *, content_type: str = "video/mp4") -> UploadFile:
    headers = Headers({"content-type": content_type})
    return UploadFile(file=BytesIO(data), filename="clip.mp4", headers=headers)


class FailingUpdateRepository(VideoRepository):
    def update_video(self, video: Video) -> Video:
        raise DatabaseOperationError("update_video failed")


def build_service(
    tmp_path: Path,
    *,
    toolkit: FakeToolkit | None = None,
    uploader: RecordingUploader | None = None,
) -> tuple[UploadService, FakeToolkit, RecordingUploader]:
    toolkit = toolkit or FakeToolkit()
    uploader = uploader or RecordingUploader()
    service = build_upload_service(build_config(tmp_path), toolkit=toolkit, uploader=uploader)
    return service, toolkit, uploader


def create_video(service: UploadService, owner=OWNER_ID) -> Video:
    return service.video_repo.create_video(user_id=owner, title="clip")


def staging_leftovers(service: UploadService) -> list[Path]:
    return list(service.temp_store.paths.staging.iterdir())


def test_parse_video_id_rejects_garbage() -> None:
    with pytest.raises(InvalidVideoIdError):
        parse_video_id("not-a-uuid")


def test_upload_from_form_requires_file_part() -> None:
    with pytest.raises(MissingUploadError):
        upload_from_form(FormData([("video", "plain text")]), "video")


def test_authorize_returns_owned_video(tmp_path: Path) -> None:
    service, _, _ = build_service(tmp_path)
    video = create_video(service)

    assert service.authorize(video.id, OWNER_ID).id == video.id


def test_authorize_unknown_video(tmp_path: Path) -> None:
    service, _, _ = build_service(tmp_path)

    with pytest.raises(VideoNotFoundError):
        service.authorize(parse_video_id("33333333-3333-4333-8333-333333333333"), OWNER_ID)


def test_authorize_rejects_non_owner(tmp_path: Path) -> None:
    service, _, _ = build_service(tmp_path)
    video = create_video(service)

    with pytest.raises(NotOwnerError):
        service.authorize(video.id, OTHER_USER_ID)


@pytest.mark.asyncio
async def test_upload_video_success_records_url(tmp_path: Path) -> None:
    service, toolkit, uploader = build_service(tmp_path)
    video = create_video(service)

    updated = await service.upload_video(video, make_upload())

    assert updated.video_url is not None
    assert URL_PATTERN.match(updated.video_url)
    assert updated.video_url.split(".amazonaws.com/")[1].startswith("landscape/")
    assert service.video_repo.get_video(video.id).video_url == updated.video_url

    [(key, body, content_type)] = uploader.uploads
    assert updated.video_url.endswith(key)
    assert body == MP4_BYTES
    assert content_type == "video/mp4"

    assert staging_leftovers(service) == []
    assert all(not path.exists() for path in toolkit.all_paths())


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("geometry", "prefix"),
    [((1080, 1920), "portrait/"), ((1000, 1000), "other/"), ((640, 0), "other/")],
)
async def test_upload_video_prefix_follows_geometry(tmp_path: Path, geometry, prefix) -> None:
    width, height = geometry
    toolkit = FakeToolkit(probe_result=ProbeResult(width=width, height=height))
    service, _, uploader = build_service(tmp_path, toolkit=toolkit)

    await service.upload_video(create_video(service), make_upload())

    assert uploader.keys[0].startswith(prefix)


@pytest.mark.asyncio
async def test_upload_video_keeps_declared_content_type(tmp_path: Path) -> None:
    service, _, uploader = build_service(tmp_path)
    declared = 'video/mp4; codecs="avc1.42E01E"'

    await service.upload_video(create_video(service), make_upload(content_type=declared))

    assert uploader.uploads[0][2] == declared


@pytest.mark.asyncio
async def test_upload_video_rejects_wrong_mime_before_staging(tmp_path: Path) -> None:
    service, toolkit, uploader = build_service(tmp_path)
    video = create_video(service)

    with pytest.raises(UnsupportedMediaError):
        await service.upload_video(video, make_upload(content_type="video/quicktime"))

    assert toolkit.probed == []
    assert uploader.uploads == []
    assert staging_leftovers(service) == []


@pytest.mark.asyncio
async def test_upload_video_probe_without_streams_fails(tmp_path: Path) -> None:
    service, toolkit, uploader = build_service(tmp_path, toolkit=FakeToolkit(probe_result=None))
    video = create_video(service)

    with pytest.raises(ProbeFailedError) as excinfo:
        await service.upload_video(video, make_upload())

    assert excinfo.value.stage is UploadStage.STAGED
    assert toolkit.remuxed == []
    assert uploader.uploads == []
    assert service.video_repo.get_video(video.id).video_url is None
    assert staging_leftovers(service) == []


@pytest.mark.asyncio
async def test_upload_video_remux_failure_cleans_partial_output(tmp_path: Path) -> None:
    toolkit = FakeToolkit(remux_error=failing_remux())
    service, _, uploader = build_service(tmp_path, toolkit=toolkit)
    video = create_video(service)

    with pytest.raises(RemuxFailedError):
        await service.upload_video(video, make_upload())

    assert uploader.uploads == []
    assert all(not path.exists() for path in toolkit.all_paths())
    assert staging_leftovers(service) == []
    assert service.video_repo.get_video(video.id).video_url is None


@pytest.mark.asyncio
async def test_upload_video_store_failure_leaves_record_untouched(tmp_path: Path) -> None:
    service, toolkit, _ = build_service(
        tmp_path, uploader=RecordingUploader(error=failing_upload())
    )
    video = create_video(service)

    with pytest.raises(UploadFailedError):
        await service.upload_video(video, make_upload())

    assert service.video_repo.get_video(video.id).video_url is None
    assert all(not path.exists() for path in toolkit.all_paths())
    assert staging_leftovers(service) == []


@pytest.mark.asyncio
async def test_upload_video_persist_failure_is_reported(tmp_path: Path) -> None:
    service, toolkit, uploader = build_service(tmp_path)
    video = create_video(service)
    service.video_repo = FailingUpdateRepository(service.video_repo._session_factory)

    with pytest.raises(PersistFailedError) as excinfo:
        await service.upload_video(video, make_upload())

    assert excinfo.value.stage is UploadStage.UPLOADED
    assert len(uploader.uploads) == 1
    assert staging_leftovers(service) == []
    assert all(not path.exists() for path in toolkit.all_paths())


@pytest.mark.asyncio
async def test_upload_video_logs_stages_in_order(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO, logger="tubely.ingest.ingest_service")
    service, _, _ = build_service(tmp_path)

    await service.upload_video(create_video(service), make_upload(), request_id="req-1")

    stages = [
        record.stage
        for record in caplog.records
        if record.getMessage() == "upload.stage" and record.request_id == "req-1"
    ]
    assert stages == ["staged", "probed", "classified", "remuxed", "uploaded", "persisted"]


@pytest.mark.asyncio
async def test_concurrent_uploads_are_isolated(tmp_path: Path) -> None:
    service, toolkit, uploader = build_service(tmp_path)
    first = create_video(service)
    second = create_video(service)

    results = await asyncio.gather(
        service.upload_video(first, make_upload(b"first" + MP4_BYTES)),
        service.upload_video(second, make_upload(b"second" + MP4_BYTES)),
    )

    assert len(set(uploader.keys)) == 2
    assert {result.video_url for result in results} == {
        service.video_repo.get_video(first.id).video_url,
        service.video_repo.get_video(second.id).video_url,
    }
    assert sorted(body[:6] for _, body, _ in uploader.uploads) == [b"first\x00", b"second"]
    assert len({path.parent for path in toolkit.probed}) == 2
    assert staging_leftovers(service) == []


@pytest.mark.asyncio
async def test_upload_video_staging_io_failure(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO, logger="tubely.ingest.ingest_service")
    service, toolkit, uploader = build_service(tmp_path)
    video = create_video(service)

    with pytest.raises(StagingFailedError) as excinfo:
        await service.upload_video(video, unreadable_upload(), request_id="req-disk")

    assert excinfo.value.stage is UploadStage.VALIDATING
    assert toolkit.probed == []
    assert uploader.uploads == []
    assert staging_leftovers(service) == []
    [failed] = [r for r in caplog.records if r.getMessage() == "upload.failed"]
    assert failed.failed_stage == "validating"
    assert failed.error_type == "StagingFailedError"


@pytest.mark.asyncio
async def test_upload_video_unexpected_error_is_logged_with_stage(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO, logger="tubely.ingest.ingest_service")
    toolkit = FakeToolkit(probe_error=RuntimeError("ffprobe wrapper crashed"))
    service, _, uploader = build_service(tmp_path, toolkit=toolkit)
    video = create_video(service)

    with pytest.raises(RuntimeError):
        await service.upload_video(video, make_upload(), request_id="req-crash")

    assert uploader.uploads == []
    assert staging_leftovers(service) == []
    [failed] = [r for r in caplog.records if r.getMessage() == "upload.failed"]
    assert failed.failed_stage == "staged"
    assert failed.error_type == "RuntimeError"
    assert failed.exc_info is not None
