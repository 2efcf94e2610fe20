'''
Keeping track of reprojections of an image: one at a time, cancellable, revertible.
'''

import threading
import weakref
from enum import Enum
from typing import Callable, Protocol

from PIL import Image

from helpers import ContractViolation, ensure
from projections import ProjectionConfig
from reproject import YIELD_INTERVAL, Chunk, Reprojection
from surfaces import PillowSurfaces


class OperationState(str, Enum):
    IN_PROGRESS = 'in-progress'
    COMPLETED = 'completed'
    FAILED = 'failed'
    ABORTED = 'aborted'


class ProgressSink(Protocol):
    def update_progress(self, fraction: float): ...
    def finished(self, state: OperationState): ...


class ReprojectionOperation:
    '''
    One reprojection of one image.

    Starts in progress and ends exactly once, as completed, failed or aborted.
    Touching it after that is a bug in the caller, and raises ContractViolation.
    '''

    def __init__(self, on_update: Callable[[float], None], on_end: Callable[[OperationState], None]):
        self.state = OperationState.IN_PROGRESS
        self.progress = 0.0
        self.error: BaseException | None = None
        self.cancelled = threading.Event()
        self._on_update = on_update
        self._on_end = on_end
        on_update(0.0)

    def _ensure_in_progress(self, action):
        ensure(self.state is OperationState.IN_PROGRESS,
               f'cannot {action} an operation that is {self.state.value}')

    def update_progress(self, fraction: float):
        self._ensure_in_progress('update')
        ensure(0 <= fraction <= 1, f'progress {fraction} is not a fraction')
        ensure(fraction >= self.progress, f'progress went backwards: {self.progress} -> {fraction}')
        self.progress = fraction
        self._on_update(fraction)

    def _end(self, state: OperationState):
        self.state = state
        self._on_end(state)

    def complete(self):
        self._ensure_in_progress('complete')
        self._end(OperationState.COMPLETED)

    def fail(self, error: BaseException | None = None):
        self._ensure_in_progress('fail')
        self.error = error
        self._end(OperationState.FAILED)

    def abort(self):
        "Cancel: the reprojection stops at its next check"
        self._ensure_in_progress('abort')
        self.cancelled.set()
        self._end(OperationState.ABORTED)


class MapImage:
    "Something displaying an image, which reprojections replace"

    def __init__(self, image: Image.Image, source: str | None = None):
        self.image = image
        self.source = source

    def __repr__(self):
        return f'<MapImage {self.source or hex(id(self))} {self.image.width}x{self.image.height}>'


class ReprojectableImageManager:
    '''
    Looks after one MapImage: at most one operation in progress, the image as it was before
    each operation (for cancelling) and the image before any operation (for reverting).
    '''

    def __init__(self, target: MapImage):
        self._target = weakref.ref(target)
        self.original = target.image
        self.previous = target.image
        self.current: ReprojectionOperation | None = None

    @property
    def target(self) -> MapImage:
        target = self._target()
        ensure(target is not None, 'image is gone')
        return target

    @property
    def busy(self):
        return self.current is not None and self.current.state is OperationState.IN_PROGRESS

    def start_operation(self, sink: ProgressSink | None = None) -> ReprojectionOperation:
        ensure(not self.busy, 'cannot start an operation while one is in progress')
        self.previous = self.target.image

        def on_update(fraction):
            if sink is not None:
                sink.update_progress(fraction)

        def on_end(state):
            if state is not OperationState.COMPLETED:
                self.target.image = self.previous
            if sink is not None:
                sink.finished(state)

        self.current = ReprojectionOperation(on_update, on_end)
        return self.current

    def show(self, surface: Image.Image):
        self.target.image = surface

    def cancel(self):
        ensure(self.busy, 'cannot cancel if no operation is in progress')
        self.current.abort()

    def revert(self):
        ensure(not self.busy, 'cannot revert while an operation is in progress')
        self.target.image = self.original

    @property
    def is_reverted(self):
        return self.target.image is self.original


_managers: 'weakref.WeakKeyDictionary[MapImage, ReprojectableImageManager]' = weakref.WeakKeyDictionary()


def manager_for(target: MapImage) -> ReprojectableImageManager:
    manager = _managers.get(target)
    if manager is None:
        manager = _managers[target] = ReprojectableImageManager(target)
    return manager


def convert(
    target: MapImage,
    config: ProjectionConfig,
    *,
    surfaces: PillowSurfaces | None = None,
    sink: ProgressSink | None = None,
    on_chunk: Callable[[ReprojectionOperation, Chunk], None] | None = None,
    longitude_offset: float | None = None,
    yield_interval: float = YIELD_INTERVAL,
) -> ReprojectionOperation:
    '''
    Reproject `target` (from its original, unreprojected image) to `config`'s projection,
    showing each partial result on it.

    `on_chunk` runs after each partial result; it is where a host gets a look in, and may
    abort the operation. Failures while reprojecting end the operation as failed (the
    error is kept on the operation); failures while setting up are raised.
    '''
    surfaces = surfaces or PillowSurfaces()
    manager = manager_for(target)
    ensure(not manager.busy, 'cannot start an operation while one is in progress')

    if longitude_offset is None:
        longitude_offset = config.longitude_offset
    job = Reprojection(
        manager.original, config.create(), config.bounds_sampling_points, surfaces,
        longitude_offset=longitude_offset)

    operation = manager.start_operation(sink)
    try:
        for chunk in job.chunks(operation.cancelled, yield_interval):
            if operation.state is not OperationState.IN_PROGRESS:
                break
            operation.update_progress(chunk.fraction)
            manager.show(chunk.surface)
            if on_chunk is not None:
                on_chunk(operation, chunk)
    except Exception as e:
        if operation.state is OperationState.IN_PROGRESS:
            operation.fail(e)
        if isinstance(e, ContractViolation):
            raise
        return operation

    if operation.state is OperationState.IN_PROGRESS:
        operation.complete()
    return operation
