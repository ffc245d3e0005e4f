import asyncio
import json
import threading
from typing import Iterable, List, Optional, Tuple

import pytest
from PIL import Image

from lambdaimage.api._invoker import FunctionInvoker
from lambdaimage.domain.types.request import InvocationResult, LambdaRequest
from lambdaimage.editor.lambda_editor import LambdaImageEditor
from lambdaimage.io.credentials import EditorConfig

BUCKET = "media-bucket"


class FakeInvoker(FunctionInvoker):
    """
    Records every invocation and answers without any network.

    Requests whose destination key contains one of ``fail_for`` get a 500,
    those matching ``crash_for`` raise a non-transport error.
    """

    def __init__(
        self,
        config: EditorConfig,
        status_code: int = 200,
        payload: bytes = b"",
        delay: float = 0.0,
        fail_for: Iterable[str] = (),
        crash_for: Iterable[str] = (),
    ):
        super().__init__(config)
        self.status_code = status_code
        self.payload = payload
        self.delay = delay
        self.fail_for = tuple(fail_for)
        self.crash_for = tuple(crash_for)
        self.closed = False
        self.calls: List[Tuple[str, LambdaRequest]] = []
        self.completed: List[str] = []
        self._lock = threading.Lock()

    def invoke(self, request: LambdaRequest):
        self.calls.append(("sync", request))
        return super().invoke(request)

    def invoke_async(self, request: LambdaRequest):
        self.calls.append(("async", request))
        return super().invoke_async(request)

    async def _send(self, payload: bytes) -> InvocationResult:
        body = json.loads(payload)
        if self.delay:
            await asyncio.sleep(self.delay)
        with self._lock:
            self.completed.append(body["new_filename"])
        if any(marker in body["new_filename"] for marker in self.crash_for):
            raise RuntimeError(f"crashed on {body['new_filename']}")
        if any(marker in body["new_filename"] for marker in self.fail_for):
            return InvocationResult(status_code=500, payload=b'{"errorMessage": "processing failed"}')
        if self.status_code >= 300:
            return InvocationResult(
                status_code=self.status_code, payload=b'{"errorMessage": "processing failed"}'
            )
        return InvocationResult(status_code=self.status_code, payload=self.payload)

    async def _close(self) -> None:
        self.closed = True

    def modes(self) -> List[str]:
        return [mode for mode, _ in self.calls]

    def request_for(self, marker: str) -> Optional[LambdaRequest]:
        for _, request in self.calls:
            if marker in request.new_filename:
                return request
        return None


@pytest.fixture
def config(tmp_path):
    return EditorConfig(
        _env_file=None,
        AWS_LAMBDA_IMAGE_BUCKET=BUCKET,
        AWS_LAMBDA_IMAGE_KEY="key",
        AWS_LAMBDA_IMAGE_SECRET="secret",
        AWS_LAMBDA_IMAGE_REGION="eu-west-1",
        UPLOAD_BASEDIR=str(tmp_path),
    )


@pytest.fixture
def make_image(tmp_path):
    def _make(name: str = "photo.jpg", size=(1000, 1000), fmt: str = "JPEG") -> str:
        path = tmp_path / name
        Image.new("RGB", size, color=(200, 120, 40)).save(path, fmt)
        return str(path)

    return _make


@pytest.fixture
def invoker(config):
    return FakeInvoker(config)


@pytest.fixture
def editor(config, invoker, make_image):
    editor = LambdaImageEditor(make_image(), config, invoker=invoker)
    editor.load()
    return editor


@pytest.fixture
def make_invoker(config):
    def _make(**kwargs) -> FakeInvoker:
        return FakeInvoker(config, **kwargs)

    return _make


@pytest.fixture
def make_editor(config, make_image):
    """Loaded editor on a fresh source image, talking to the given invoker."""

    def _make(invoker: FunctionInvoker, **image_kwargs) -> LambdaImageEditor:
        editor = LambdaImageEditor(make_image(**image_kwargs), config, invoker=invoker)
        editor.load()
        return editor

    return _make
