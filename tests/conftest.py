import stat
import sys
import textwrap
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
import pytest

# Ensure tests can import project packages regardless of how pytest is invoked.
ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

from clipvault.core.config import Settings
from clipvault.core.db import init_models
from clipvault.platform.providers import build_providers

RESOLVER_URL = "http://resolver.test/"

if sys.platform == "win32":
    collect_ignore_glob = ["test_transcoder.py", "test_acquisition_service.py", "test_api.py"]


def write_executable(path: Path, body: str) -> Path:
    path.write_text("#!/bin/sh\n" + textwrap.dedent(body).lstrip())
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


class FakeTools:
    """Shell stand-ins for ffmpeg/ffprobe living in a temp directory."""

    def __init__(self, root: Path):
        self.root = root
        self.args_log = root / "ffmpeg-args.log"
        self.pid_file = root / "ffmpeg.pid"
        self.ffprobe = write_executable(root / "ffprobe", 'echo "12.5"\n')

    def ffmpeg(self, kind: str = "shrink") -> str:
        bodies = {
            # keep the first 4 bytes of the input as the "encoded" output
            "shrink": f'''
                if [ "$1" = "-version" ]; then echo "ffmpeg version 6.1-test"; exit 0; fi
                printf '%s\\n' "$*" >> "{self.args_log}"
                prev=""
                for a in "$@"; do
                  if [ "$prev" = "-i" ]; then src="$a"; fi
                  prev="$a"
                done
                head -c 4 "$src" > "$prev"
            ''',
            "grow": '''
                if [ "$1" = "-version" ]; then exit 0; fi
                prev=""
                for a in "$@"; do
                  if [ "$prev" = "-i" ]; then src="$a"; fi
                  prev="$a"
                done
                cat "$src" "$src" > "$prev"
            ''',
            "fail": '''
                if [ "$1" = "-version" ]; then exit 0; fi
                echo "Invalid data found when processing input" >&2
                exit 1
            ''',
            "hang": f'''
                if [ "$1" = "-version" ]; then exit 0; fi
                echo $$ > "{self.pid_file}"
                exec sleep 30
            ''',
        }
        return str(write_executable(self.root / f"ffmpeg-{kind}", bodies[kind]))


class FakeUpstream:
    """Resolution service plus media CDN behind one ``httpx.MockTransport``."""

    def __init__(self):
        self.resolution: dict = {"status": "error", "error": {"code": "error.api.unconfigured"}}
        self.resolver_status = 200
        self.media: dict[str, tuple[int, dict, bytes]] = {}
        self.calls: list[httpx.Request] = []

    def serve(self, url: str, body: bytes, *, status: int = 200, content_type: str = "video/mp4"):
        self.media[url] = (status, {"Content-Type": content_type}, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        url = str(request.url)
        if url == RESOLVER_URL:
            if request.method == "GET":
                return httpx.Response(200, json={"cobalt": {"version": "10.0"}})
            return httpx.Response(self.resolver_status, json=self.resolution)
        if url in self.media:
            status, headers, body = self.media[url]
            return httpx.Response(status, headers=headers, content=body)
        return httpx.Response(404, text="not found")

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture()
def tools(tmp_path) -> FakeTools:
    root = tmp_path / "bin"
    root.mkdir()
    return FakeTools(root)


@pytest.fixture()
def scratch_dir(tmp_path) -> Path:
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture()
def make_settings(tmp_path, tools, scratch_dir):
    def _make(**overrides) -> Settings:
        values = dict(
            ENV="dev",
            DATABASE_DSN=f"sqlite+aiosqlite:///{tmp_path / 'clipvault.db'}",
            DB_MANAGE="create_all",
            OBJECT_STORAGE_PROVIDER="local",
            LOCAL_STORAGE_ROOT=str(tmp_path / "media"),
            RESOLVER_API_URL=RESOLVER_URL,
            TRANSCODE_TMP_DIR=str(scratch_dir),
            FFMPEG_BINARY=tools.ffmpeg("shrink"),
            FFPROBE_BINARY=str(tools.ffprobe),
            ACQUISITION_TIMEOUT_SECONDS=30.0,
        )
        values.update(overrides)
        return Settings(**values)
    return _make


@pytest.fixture()
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture()
def open_providers():
    @asynccontextmanager
    async def _open(settings: Settings, upstream: FakeUpstream, **kwargs):
        providers = build_providers(settings, http=upstream.client(), **kwargs)
        await init_models(providers.engine, settings)
        try:
            yield providers
        finally:
            await providers.aclose()
    return _open
