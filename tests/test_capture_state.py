import pytest

from markupcapture.capture_state import CaptureProgress, CaptureState, InvalidTransition


def _run(progress: CaptureProgress, states: list[CaptureState]) -> None:
    for state in states:
        progress.advance(state)


def test_full_path_with_annotation() -> None:
    progress = CaptureProgress()
    _run(
        progress,
        [
            CaptureState.BROWSER_LAUNCHING,
            CaptureState.NAVIGATING,
            CaptureState.WAITING,
            CaptureState.CAPTURING,
            CaptureState.ANNOTATING,
            CaptureState.ENCODING,
            CaptureState.DONE,
        ],
    )
    assert progress.finished
    assert progress.history[0] is CaptureState.RECEIVED
    assert progress.history[-1] is CaptureState.DONE


def test_annotation_is_optional() -> None:
    progress = CaptureProgress()
    _run(
        progress,
        [
            CaptureState.BROWSER_LAUNCHING,
            CaptureState.NAVIGATING,
            CaptureState.WAITING,
            CaptureState.CAPTURING,
            CaptureState.ENCODING,
        ],
    )
    assert progress.state is CaptureState.ENCODING


def test_states_cannot_be_skipped_or_repeated() -> None:
    progress = CaptureProgress()
    with pytest.raises(InvalidTransition):
        progress.advance(CaptureState.CAPTURING)
    progress.advance(CaptureState.BROWSER_LAUNCHING)
    with pytest.raises(InvalidTransition):
        progress.advance(CaptureState.BROWSER_LAUNCHING)


def test_any_running_state_can_fail_but_terminal_states_are_final() -> None:
    progress = CaptureProgress()
    progress.advance(CaptureState.BROWSER_LAUNCHING)
    progress.fail()
    assert progress.state is CaptureState.FAILED
    with pytest.raises(InvalidTransition):
        progress.fail()
    with pytest.raises(InvalidTransition):
        progress.advance(CaptureState.NAVIGATING)


def test_received_can_fail_directly() -> None:
    progress = CaptureProgress()
    progress.fail()
    assert progress.history == [CaptureState.RECEIVED, CaptureState.FAILED]
