import time
from dataclasses import replace
from queue import Queue
from threading import Event

import numpy as np

from conftest import FakeEngine, ListSource, make_uniform_frame
from core.bus import EventBus
from core.events import ClassificationReady, FrameSkipped, Verdict
from core.stages import AnalysisStage, CaptureStage, offer_latest
from core.tensor import TensorBuilder


def collect(bus, event_type):
    events = []
    bus.subscribe(event_type, events.append)
    return events


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_offer_latest_keeps_only_newest():
    queue = Queue(maxsize=1)

    assert offer_latest(queue, "first") is False
    assert offer_latest(queue, "second") is True
    assert offer_latest(queue, "third") is True

    assert queue.qsize() == 1
    assert queue.get_nowait() == "third"


def test_capture_stage_delivers_latest_frame_and_stops_source():
    frames = [make_uniform_frame(8, 8) for _ in range(5)]
    source = ListSource(frames)
    queue = Queue(maxsize=1)
    stage = CaptureStage(source, queue, Event(), fps=1000, loop_video=False, source_type="video")

    stage.start()
    stage.join(timeout=5.0)

    assert not stage.is_alive()
    assert stage.frames_captured == 5
    assert stage.frames_dropped == 4
    assert queue.get_nowait() is frames[-1]
    assert source.stopped == 1


def test_capture_stage_gives_up_when_source_fails_to_start():
    source = ListSource([], start_ok=False)
    stage = CaptureStage(source, Queue(maxsize=1), Event())

    stage.run()

    assert stage.frames_captured == 0


def test_analysis_process_publishes_result(gray_frame, fake_engine):
    bus = EventBus()
    ready = collect(bus, ClassificationReady)
    stage = AnalysisStage(Queue(), bus, Event(), fake_engine)

    result = stage.process(gray_frame)

    assert result.verdict is Verdict.TARGET
    assert [e.result for e in ready] == [result]
    assert fake_engine.load_calls == 1
    assert fake_engine.inputs[0].shape == (1, 3, 224, 224)
    assert fake_engine.inputs[0].dtype == np.float32


def test_engine_is_loaded_once(gray_frame, fake_engine):
    stage = AnalysisStage(Queue(), EventBus(), Event(), fake_engine)

    for _ in range(3):
        stage.process(gray_frame)

    assert fake_engine.load_calls == 1
    assert stage.frames_classified == 3


def test_decode_failure_skips_frame(fake_engine):
    bus = EventBus()
    ready = collect(bus, ClassificationReady)
    skipped = collect(bus, FrameSkipped)
    stage = AnalysisStage(Queue(), bus, Event(), fake_engine)
    bad = replace(make_uniform_frame(8, 8), width=0)

    assert stage.process(bad) is None
    assert ready == []
    assert [e.kind for e in skipped] == ["DecodeFailure"]
    assert stage.failures.count("DecodeFailure") == 1
    assert fake_engine.inputs == []


def test_unloadable_engine_is_retried_on_next_frame(gray_frame):
    engine = FakeEngine(fail_load=True)
    bus = EventBus()
    skipped = collect(bus, FrameSkipped)
    stage = AnalysisStage(Queue(), bus, Event(), engine)

    assert stage.process(gray_frame) is None
    engine.fail_load = False
    assert stage.process(gray_frame) is not None

    assert engine.load_calls == 2
    assert [e.kind for e in skipped] == ["InferenceFailure"]


def test_inference_failure_does_not_stop_the_worker(gray_frame):
    engine = FakeEngine(fail_run=True)
    bus = EventBus()
    ready = collect(bus, ClassificationReady)
    skipped = collect(bus, FrameSkipped)
    queue = Queue(maxsize=1)
    stop = Event()
    stage = AnalysisStage(queue, bus, stop, engine)
    stage.start()

    queue.put(gray_frame)
    assert wait_for(lambda: len(skipped) == 1)

    engine.fail_run = False
    queue.put(gray_frame)
    assert wait_for(lambda: len(ready) == 1)

    stop.set()
    stage.join(timeout=5.0)
    assert not stage.is_alive()
    assert stage.frames_skipped == 1


def test_engine_released_when_stage_stops(fake_engine):
    stop = Event()
    stage = AnalysisStage(Queue(maxsize=1), EventBus(), stop, fake_engine)
    stage.start()

    stop.set()
    stage.join(timeout=5.0)

    assert fake_engine.close_calls == 1


def test_preview_frames_go_to_viewer_queue(gray_frame, fake_engine):
    viewer = Queue(maxsize=1)
    stage = AnalysisStage(Queue(), EventBus(), Event(), fake_engine, viewer_queue=viewer)

    stage.process(gray_frame)
    stage.process(gray_frame)

    preview = viewer.get_nowait()
    assert preview.shape == (48, 64, 3)
    assert viewer.empty()


def test_custom_tensor_size_reaches_engine(gray_frame, fake_engine):
    stage = AnalysisStage(Queue(), EventBus(), Event(), fake_engine,
                          tensor_builder=TensorBuilder(input_size=32))

    stage.process(gray_frame)

    assert fake_engine.inputs[0].shape == (1, 3, 32, 32)


def test_non_finite_scores_skip_the_frame_and_keep_the_worker_alive(gray_frame):
    engine = FakeEngine(scores=(float("nan"), 0.0))
    bus = EventBus()
    ready = collect(bus, ClassificationReady)
    skipped = collect(bus, FrameSkipped)
    queue = Queue(maxsize=1)
    stop = Event()
    stage = AnalysisStage(queue, bus, stop, engine)
    stage.start()

    queue.put(gray_frame)
    assert wait_for(lambda: len(skipped) == 1)
    assert stage.is_alive()
    assert skipped[0].kind == "InferenceFailure"

    engine.scores = np.array([10.0, 0.0], dtype=np.float32)
    queue.put(gray_frame)
    assert wait_for(lambda: len(ready) == 1)

    stop.set()
    stage.join(timeout=5.0)
    assert not stage.is_alive()
