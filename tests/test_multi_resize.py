import json

import pytest

from lambdaimage.domain.types.image import ImageSize
from lambdaimage.domain.types.operation import CropOperation, ResizeOperation, RotateOperation
from lambdaimage.io.exceptions import RemoteExecutionError
from lambdaimage.ops.multi_resize import MultiSizeOrchestrator, SizeSpec

SIZES = {
    "thumbnail": {"width": 150, "height": 150, "crop": True},
    "medium": {"width": 300, "height": 300},
    "large": {"width": 1024, "height": 1024},
    "full": {"width": 1000, "height": 1000},
}


def test_first_size_sync_rest_async(editor, invoker):
    result = editor.multi_resize(SIZES)

    assert list(result) == ["thumbnail", "medium"]
    assert invoker.modes() == ["sync", "async"]
    assert invoker.calls[0][1].new_filename == "photo-150x150.jpg"
    assert invoker.calls[1][1].new_filename == "photo-300x300.jpg"


def test_sizes_do_not_share_operations(editor, invoker):
    editor.multi_resize(SIZES)

    thumbnail = invoker.request_for("150x150")
    medium = invoker.request_for("300x300")
    assert thumbnail.operations == [
        CropOperation(
            src_x=0,
            src_y=0,
            src_width=1000,
            src_height=1000,
            destination_width=150,
            destination_height=150,
        )
    ]
    assert medium.operations == [ResizeOperation(width=300, height=300)]


def test_pending_operations_apply_to_every_size(editor, invoker):
    editor.rotate(180)
    editor.multi_resize(
        {
            "small": {"width": 100, "height": 100},
            "medium": {"width": 300, "height": None},
        }
    )

    assert invoker.request_for("100x100").operations == [
        RotateOperation(angle=180),
        ResizeOperation(width=100, height=100),
    ]
    assert invoker.request_for("300x300").operations == [
        RotateOperation(angle=180),
        ResizeOperation(width=300, height=300),
    ]
    assert editor.operations.to_list() == [RotateOperation(angle=180)]


def test_editor_state_restored(editor):
    editor.multi_resize(SIZES)
    assert editor.get_size() == ImageSize(width=1000, height=1000)
    assert len(editor.operations) == 0
    assert editor.file.endswith("photo.jpg")
    assert editor.source_key == "photo.jpg"


def test_returned_metadata(editor):
    result = editor.multi_resize(SIZES)

    medium = result["medium"]
    assert medium.path is None
    assert medium.file == "photo-300x300.jpg"
    assert (medium.width, medium.height) == (300, 300)
    assert medium.model_dump(by_alias=True)["mime-type"] == "image/jpeg"
    assert result["thumbnail"].path is None
    for entry in result.values():
        assert "path" not in entry.model_dump(by_alias=True)
        assert "path" not in json.loads(entry.model_dump_json())


def test_async_saves_joined_before_return(make_invoker, make_editor):
    invoker = make_invoker(delay=0.2)
    editor = make_editor(invoker)

    editor.multi_resize(
        {
            "a": {"width": 100, "height": 100},
            "b": {"width": 200, "height": 200},
            "c": {"width": 300, "height": 300},
        }
    )

    assert sorted(invoker.completed) == [
        "photo-100x100.jpg",
        "photo-200x200.jpg",
        "photo-300x300.jpg",
    ]
    assert invoker.modes() == ["sync", "async", "async"]


def test_async_failure_does_not_abort_siblings(make_invoker, make_editor):
    invoker = make_invoker(fail_for=("200x200",))
    editor = make_editor(invoker)
    sizes = {
        "a": {"width": 100, "height": 100},
        "b": {"width": 200, "height": 200},
        "c": {"width": 300, "height": 300},
    }

    batch = MultiSizeOrchestrator(editor).run(sizes)

    assert list(batch.sizes) == ["a", "c"]
    assert batch.errors == {"b": "processing failed (photo-200x200.jpg)"}
    assert len(invoker.completed) == 3


def test_sync_failure_propagates_and_restores_state(make_invoker, make_editor):
    invoker = make_invoker(fail_for=("150x150",))
    editor = make_editor(invoker)
    editor.flip(True, False)
    before = editor.operations.to_list()

    with pytest.raises(RemoteExecutionError):
        editor.multi_resize(SIZES)

    assert editor.operations.to_list() == before
    assert editor.get_size() == ImageSize(width=1000, height=1000)
    assert invoker.modes() == ["sync"]


def test_skipped_sizes(editor, invoker):
    batch = MultiSizeOrchestrator(editor).run(
        {
            "empty": {},
            "same": {"width": 1000, "height": 1000},
            "bigger": SizeSpec(width=2000, height=2000),
            "small": {"width": 100, "height": None},
            "tall": {"width": None, "height": 200},
        }
    )

    assert batch.skipped == ["empty", "same", "bigger"]
    assert list(batch.sizes) == ["small", "tall"]
    assert batch.errors == {}
    assert invoker.modes() == ["sync", "async"]
    assert invoker.calls[0][1].new_filename == "photo-100x100.jpg"


def test_nothing_to_do(editor, invoker):
    assert editor.multi_resize({"same": {"width": 1000, "height": 1000}}) == {}
    assert invoker.calls == []


def test_missing_crop_defaults_to_false(editor, invoker):
    result = editor.multi_resize({"medium": {"width": 300, "height": 300, "crop": None}})

    assert list(result) == ["medium"]
    assert invoker.request_for("300x300").operations == [ResizeOperation(width=300, height=300)]


def test_unreadable_entry_is_skipped(editor, invoker):
    batch = MultiSizeOrchestrator(editor).run(
        {
            "bad": {"width": "wide", "height": 100},
            "small": {"width": 100, "height": 100},
        }
    )

    assert batch.skipped == ["bad"]
    assert list(batch.sizes) == ["small"]
    assert invoker.modes() == ["sync"]


def test_crashed_async_save_is_raised_after_join(make_invoker, make_editor):
    invoker = make_invoker(crash_for=("200x200",))
    editor = make_editor(invoker)

    with pytest.raises(RuntimeError, match="crashed on photo-200x200.jpg"):
        editor.multi_resize(
            {
                "a": {"width": 100, "height": 100},
                "b": {"width": 200, "height": 200},
                "c": {"width": 300, "height": 300},
            }
        )
    assert sorted(invoker.completed) == [
        "photo-100x100.jpg",
        "photo-200x200.jpg",
        "photo-300x300.jpg",
    ]


def test_error_in_flight_is_not_masked_by_joined_save(make_invoker, make_editor, monkeypatch):
    invoker = make_invoker(crash_for=("200x200",), delay=0.05)
    editor = make_editor(invoker)
    resize = editor.resize

    def resize_or_fail(max_w, max_h, crop=False):
        if max_w == 300:
            raise KeyError("size table corrupted")
        resize(max_w, max_h, crop)

    monkeypatch.setattr(editor, "resize", resize_or_fail)

    with pytest.raises(KeyError, match="size table corrupted"):
        editor.multi_resize(
            {
                "a": {"width": 100, "height": 100},
                "b": {"width": 200, "height": 200},
                "c": {"width": 300, "height": 300},
            }
        )
    assert "photo-200x200.jpg" in invoker.completed
    assert len(editor.operations) == 0
    assert editor.get_size() == ImageSize(width=1000, height=1000)


if __name__ == "__main__":
    pytest.main()
