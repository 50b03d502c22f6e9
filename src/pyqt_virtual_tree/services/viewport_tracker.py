"""Scroll container observation: content rect, scroll offset and direction.

Attaches to a ``QAbstractScrollArea`` and reports:

- the viewport widget's size, once on attach and on every resize event
- the scroll offset along the configured axis, on every scrollbar tick
  (``is_scrolling=True``) and when scrolling settles (``is_scrolling=False``)

Scroll settling uses the container's ``scrollEnded`` signal when it has one,
otherwise a single-shot QTimer restarted by every tick.

Usage:
    tracker = ViewportTracker(on_rect=print, on_offset=print)
    dispose = tracker.attach(scroll_area)
    ...
    dispose()  # safe to call again, or after scroll_area is gone
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from PyQt6.QtCore import QEvent, QObject, QTimer, pyqtBoundSignal
from PyQt6.QtWidgets import QAbstractScrollArea, QScrollBar, QWidget

from ..models.tree_item import Rect, ScrollDirection, ViewportState

logger = logging.getLogger(__name__)

RectCallback = Callable[[Rect], None]
OffsetCallback = Callable[[int, bool, Optional[ScrollDirection]], None]


class ResizeEventFilter(QObject):
    """Event filter that calls back on every resize of the watched widget."""

    def __init__(self, callback: Callable[[], None]):
        super().__init__()
        self._callback = callback

    def eventFilter(self, a0, a1):
        if a1 is not None and a1.type() == QEvent.Type.Resize:
            self._callback()
        # Observe only, never consume.
        return super().eventFilter(a0, a1)


class ViewportTracker:
    """Observe one scroll container at a time."""

    def __init__(
        self,
        *,
        on_rect: RectCallback,
        on_offset: OffsetCallback,
        horizontal: bool = False,
        is_rtl: bool = False,
        is_scrolling_reset_delay: int = 150,
    ) -> None:
        self._on_rect = on_rect
        self._on_offset = on_offset
        self.horizontal = horizontal
        self.is_rtl = is_rtl
        self.is_scrolling_reset_delay = is_scrolling_reset_delay

        self._container: Optional[QAbstractScrollArea] = None
        self._scrollbar: Optional[QScrollBar] = None
        self._viewport: Optional[QWidget] = None
        self._resize_filter: Optional[ResizeEventFilter] = None
        self._scroll_end_signal: Optional[pyqtBoundSignal] = None
        self._reset_timer: Optional[QTimer] = None
        self._state: Optional[ViewportState] = None
        self._attach_generation = 0

    @property
    def state(self) -> Optional[ViewportState]:
        """Last reported viewport state; None while detached."""
        return self._state

    @property
    def container(self) -> Optional[QAbstractScrollArea]:
        return self._container

    @property
    def is_attached(self) -> bool:
        return self._container is not None

    def attach(self, container: QAbstractScrollArea) -> Callable[[], None]:
        """Start observing ``container``, replacing any previous one.

        Returns:
            A disposer that detaches this attachment. Calling it twice, or
            after a later ``attach``, does nothing.
        """
        self.detach()
        self._attach_generation += 1
        generation = self._attach_generation

        self._container = container
        self._state = ViewportState()
        self._scrollbar = (
            container.horizontalScrollBar() if self.horizontal else container.verticalScrollBar()
        )
        if self._scrollbar is not None:
            self._scrollbar.valueChanged.connect(self._handle_scroll)

        self._attach_scroll_end(container)
        self._attach_rect(container)
        self._report_scroll_end()

        logger.debug(
            f"Attached viewport tracker to {type(container).__name__} "
            f"(horizontal={self.horizontal}, rtl={self.is_rtl})"
        )

        def dispose() -> None:
            if generation == self._attach_generation:
                self.detach()

        return dispose

    def _attach_scroll_end(self, container: QAbstractScrollArea) -> None:
        signal = getattr(container, "scrollEnded", None)
        if isinstance(signal, pyqtBoundSignal):
            signal.connect(self._report_scroll_end)
            self._scroll_end_signal = signal
            logger.debug("Using native scrollEnded signal for scroll settling")
            return
        timer = QTimer()
        timer.setSingleShot(True)
        timer.setInterval(self.is_scrolling_reset_delay)
        timer.timeout.connect(self._report_scroll_end)
        self._reset_timer = timer

    def _attach_rect(self, container: QAbstractScrollArea) -> None:
        self._viewport = container.viewport()
        if self._viewport is None:
            logger.debug("Scroll container has no viewport; rect reported once")
            self._report_rect(container)
            return
        self._resize_filter = ResizeEventFilter(self._handle_resize)
        self._viewport.installEventFilter(self._resize_filter)
        self._report_rect(self._viewport)

    def detach(self) -> None:
        """Stop observing. Idempotent."""
        if self._container is None:
            return

        if self._reset_timer is not None:
            self._reset_timer.stop()
            _disconnect(self._reset_timer, "timeout", self._report_scroll_end)
            self._reset_timer = None
        if self._scroll_end_signal is not None:
            _disconnect(self._container, "scrollEnded", self._report_scroll_end)
            self._scroll_end_signal = None
        if self._scrollbar is not None:
            _disconnect(self._scrollbar, "valueChanged", self._handle_scroll)
            self._scrollbar = None
        if self._viewport is not None and self._resize_filter is not None:
            try:
                self._viewport.removeEventFilter(self._resize_filter)
            except RuntimeError:
                logger.debug("Viewport already deleted; event filter gone with it")
        self._viewport = None
        self._resize_filter = None

        self._container = None
        self._state = None
        self._attach_generation += 1
        logger.debug("Detached viewport tracker")

    def read_offset(self) -> int:
        """Current scroll offset along the tracked axis.

        Qt mirrors a horizontal bar under a right-to-left layout, so its value
        already counts from the leading edge and is reported as is.
        """
        if self._scrollbar is None:
            return 0
        return self._scrollbar.value()

    def scroll_to_offset(self, offset: int) -> None:
        """Move the tracked scrollbar; the resulting tick is reported as usual."""
        if self._scrollbar is None:
            return
        self._scrollbar.setValue(int(round(offset)))

    def _handle_scroll(self, _value: int = 0) -> None:
        if self._state is None:
            return
        offset = self.read_offset()
        direction = (
            ScrollDirection.FORWARD if offset > self._state.offset else ScrollDirection.BACKWARD
        )
        self._state.offset = offset
        self._state.is_scrolling = True
        self._state.direction = direction
        if self._reset_timer is not None:
            self._reset_timer.start()
        self._on_offset(offset, True, direction)

    def _report_scroll_end(self) -> None:
        if self._state is None:
            return
        offset = self.read_offset()
        self._state.offset = offset
        self._state.is_scrolling = False
        self._state.direction = None
        self._on_offset(offset, False, None)

    def _handle_resize(self) -> None:
        if self._viewport is not None:
            self._report_rect(self._viewport)

    def _report_rect(self, widget: QWidget) -> None:
        if self._state is None:
            return
        rect = Rect(width=int(widget.width()), height=int(widget.height()))
        self._state.rect = rect
        self._on_rect(rect)


def _disconnect(sender, signal_name: str, slot) -> None:
    try:
        getattr(sender, signal_name).disconnect(slot)
    except (TypeError, RuntimeError):
        logger.debug("Signal already disconnected or its sender deleted")
