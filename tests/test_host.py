from __future__ import annotations

import threading

import pytest
from PIL import Image

from favicon_maker.core.errors import DocumentClosedError, HostError, ModalBusyError, ModalStateError
from favicon_maker.core.host import DocumentHost


def _modal(host: DocumentHost, fn, name: str = "Test"):
    return host.execute_as_modal(fn, command_name=name)


def test_create_document_outside_modal_is_rejected(host):
    with pytest.raises(ModalStateError):
        host.create_document(46, 46)
    assert host.open_documents == []


def test_create_document_uses_requested_parameters(host):
    doc = _modal(host, lambda: host.create_document(46, 46, resolution=72, mode="RGB", fill="white"))

    assert host.active_document is doc
    assert (doc.width, doc.height) == (46, 46)
    assert doc.mode == "RGB"
    assert doc.resolution == 72
    assert doc.image.getpixel((0, 0)) == (255, 255, 255)
    assert doc.image.getpixel((45, 45)) == (255, 255, 255)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"width": 0, "height": 46},
        {"width": 46, "height": 5000},
        {"width": 46, "height": 46, "mode": "CMYK"},
        {"width": 46, "height": 46, "fill": "not-a-colour"},
        {"width": 46, "height": 46, "resolution": 0},
    ],
)
def test_create_document_rejects_bad_parameters(host, kwargs):
    with pytest.raises(HostError):
        _modal(host, lambda: host.create_document(**kwargs))
    assert host.open_documents == []


def test_modal_scope_is_exclusive_and_released_on_error(host):
    def nested():
        host.execute_as_modal(lambda: None, command_name="Inner")

    with pytest.raises(ModalBusyError):
        _modal(host, nested, "Outer")

    # Released after the failure: a new scope can start
    assert not host.in_modal
    assert _modal(host, lambda: 42) == 42


def test_modal_scope_blocks_other_threads(host):
    entered = threading.Event()
    release = threading.Event()
    errors: list[Exception] = []

    def hold():
        entered.set()
        release.wait(timeout=5)

    t = threading.Thread(target=lambda: _modal(host, hold, "Holder"))
    t.start()
    try:
        assert entered.wait(timeout=5)
        try:
            _modal(host, lambda: None, "Intruder")
        except ModalBusyError as e:
            errors.append(e)
    finally:
        release.set()
        t.join(timeout=5)

    assert len(errors) == 1
    assert "Holder" in str(errors[0])


def test_history_records_completed_commands_only(host):
    _modal(host, lambda: host.create_document(8, 8), "Create Favicon Canvas")
    with pytest.raises(HostError):
        _modal(host, lambda: host.create_document(0, 8), "Broken")

    assert host.history.entries() == ["Create Favicon Canvas"]


def test_duplicate_becomes_active_and_close_restores_original(host):
    original = _modal(host, lambda: host.create_document(10, 10))

    def work():
        dup = original.duplicate()
        assert host.active_document is dup
        assert dup.id != original.id
        assert len(host.open_documents) == 2
        dup.close(save_changes=False)
        return dup

    dup = _modal(host, work)
    assert dup.closed
    assert host.active_document is original
    assert host.open_documents == [original]


def test_closed_document_cannot_be_used(host):
    doc = _modal(host, lambda: host.create_document(10, 10))
    _modal(host, lambda: doc.close())

    with pytest.raises(DocumentClosedError):
        _modal(host, lambda: doc.resize_image(5, 5))
    assert host.active_document is None


def test_close_with_save_requires_a_file(host):
    doc = _modal(host, lambda: host.create_document(10, 10))
    with pytest.raises(HostError):
        _modal(host, lambda: doc.close(save_changes=True))
    assert not doc.closed


def test_invert_batch_command_runs_synchronously(host):
    doc = _modal(host, lambda: host.create_document(4, 4, fill=(10, 20, 30)))

    def work():
        result = host.batch_play(
            [{"_obj": "invert", "_target": [{"_ref": "document", "_id": doc.id}]}],
            synchronous_execution=True,
        )
        # Applied before batch_play returns
        assert doc.image.getpixel((0, 0)) == (245, 235, 225)
        return result

    assert _modal(host, work) == [{"_obj": "invert", "documentID": doc.id}]


def test_deferred_batch_command_runs_when_modal_scope_exits(host):
    doc = _modal(host, lambda: host.create_document(4, 4, fill="black"))

    def work():
        host.batch_play([{"_obj": "invert", "_target": [{"_ref": "document", "_id": doc.id}]}])
        assert doc.image.getpixel((0, 0)) == (0, 0, 0)

    _modal(host, work)
    assert doc.image.getpixel((0, 0)) == (255, 255, 255)


def test_deferred_commands_are_dropped_when_scope_fails(host):
    doc = _modal(host, lambda: host.create_document(4, 4, fill="black"))

    def work():
        host.batch_play([{"_obj": "invert"}])
        raise HostError("boom")

    with pytest.raises(HostError):
        _modal(host, work)
    assert doc.image.getpixel((0, 0)) == (0, 0, 0)


def test_invert_keeps_alpha(host, logo_doc):
    before = logo_doc.image.getpixel((40, 40))
    _modal(host, lambda: host.batch_play([{"_obj": "invert"}], synchronous_execution=True))
    after = logo_doc.image.getpixel((40, 40))

    assert after[3] == before[3] == 128
    assert after[:3] == tuple(255 - c for c in before[:3])


def test_unknown_batch_command_is_rejected(host):
    _modal(host, lambda: host.create_document(4, 4))
    with pytest.raises(HostError, match="Unknown batch command"):
        _modal(host, lambda: host.batch_play([{"_obj": "sharpen"}], synchronous_execution=True))


def test_batch_command_with_unknown_target(host):
    _modal(host, lambda: host.create_document(4, 4))
    with pytest.raises(HostError, match="No open document"):
        _modal(
            host,
            lambda: host.batch_play(
                [{"_obj": "invert", "_target": [{"_ref": "document", "_id": 999}]}],
                synchronous_execution=True,
            ),
        )


def test_resize_image(host):
    doc = _modal(host, lambda: host.create_document(46, 46))
    _modal(host, lambda: doc.resize_image(23, 23))
    assert (doc.width, doc.height) == (23, 23)

    with pytest.raises(HostError):
        _modal(host, lambda: doc.resize_image(0, 23))


def test_open_document_missing_file(host, tmp_path):
    with pytest.raises(HostError, match="Failed to open"):
        _modal(host, lambda: host.open_document(tmp_path / "nope.png"))


def test_other_thread_cannot_mutate_while_scope_is_held(host):
    entered = threading.Event()
    release = threading.Event()
    errors: list[Exception] = []

    def hold():
        entered.set()
        release.wait(timeout=5)

    t = threading.Thread(target=lambda: _modal(host, hold, "Export Favicons"))
    t.start()
    try:
        assert entered.wait(timeout=5)
        try:
            host.create_document(8, 8)
        except ModalStateError as e:
            errors.append(e)
    finally:
        release.set()
        t.join(timeout=5)

    assert len(errors) == 1
    assert "another thread" in str(errors[0])
    assert host.open_documents == []


def test_close_with_save_writes_back_to_source_file(host, logo_doc, logo_path):
    _modal(host, lambda: host.batch_play([{"_obj": "invert"}], synchronous_execution=True))
    _modal(host, lambda: logo_doc.close(save_changes=True))

    assert logo_doc.closed
    assert host.open_documents == []
    with Image.open(logo_path) as saved:
        assert saved.convert("RGBA").getpixel((40, 40)) == (255, 255, 255, 128)
        assert saved.getpixel((0, 0))[:3] == (55, 225, 215)
