"""Tree virtualization engine.

TreeVirtualizer combines the pieces of the package:

- TreeStateStore: expanded ids and the id → node index
- VisibilityProjector: the ordered visible-node sequence
- ViewportTracker: rect/offset of an attached QAbstractScrollArea
- range extraction: viewport range → indexes to render
- ChangeNotifier: listeners called after every mutation

Derived values are ``memo`` getters, so a render pass that asks for the same
window twice does no work the second time.

Example Usage:

    tree = TreeVirtualizer(data, accessor_key="name", overscan=2)
    tree.subscribe(lambda instance, sync: view.update())
    dispose = tree.attach(scroll_area)

    for item in tree.get_virtual_items():
        paint_row(item.start, tree.get_display_value(item.node))

    tree.toggle_node(node_id, visible_index)
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import (
    Any,
    Callable,
    FrozenSet,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from PyQt6.QtCore import QObject
from PyQt6.QtWidgets import QAbstractScrollArea

from .models.tree_item import (
    NodeId,
    Rect,
    ScrollAlignment,
    ScrollDirection,
    TreeItem,
    VirtualItem,
)
from .options import TreeVirtualizerOptions
from .services.change_notifier import ChangeListener, ChangeNotifier
from .services.tree_state_store import TreeStateStore
from .services.viewport_tracker import ViewportTracker
from .services.visibility_projector import VisibilityProjector
from .strategies.range_extraction import Range
from .utils.memo import approx_equal, memo

logger = logging.getLogger(__name__)

TreeData = Sequence[Union[TreeItem, Mapping[str, Any]]]


def _coerce_items(data: TreeData) -> List[TreeItem]:
    return [item if isinstance(item, TreeItem) else TreeItem.from_payload(item) for item in data]


def _find_nearest(low: int, high: int, get_value: Callable[[int], int], value: float) -> int:
    """Index of the last entry whose value is <= ``value`` (binary search)."""
    while low <= high:
        middle = (low + high) // 2
        current = get_value(middle)
        if current < value:
            low = middle + 1
        elif current > value:
            high = middle - 1
        else:
            return middle
    return low - 1 if low > 0 else 0


class TreeVirtualizer:
    """Virtualized view over a flattened tree dataset.

    Args:
        data: Tree nodes (TreeItem or plain mappings) with parent references.
        accessor_key: Field used as a node's display value.
        options: Base options; keyword overrides are applied on top.
    """

    def __init__(
        self,
        data: TreeData,
        accessor_key: str,
        options: Optional[TreeVirtualizerOptions] = None,
        **overrides: Any,
    ) -> None:
        self.options = (options or TreeVirtualizerOptions()).with_overrides(**overrides)
        self.accessor_key = accessor_key
        self.selected_id: Optional[NodeId] = None

        self._store = TreeStateStore(_coerce_items(data))
        self._projector = VisibilityProjector(self._store)
        self._notifier: ChangeNotifier["TreeVirtualizer"] = ChangeNotifier()
        if self.options.on_change is not None:
            self._notifier.subscribe(self.options.on_change)

        # Viewport state, filled in by the tracker while attached.
        self.scroll_rect: Optional[Rect] = None
        self.scroll_offset: Optional[int] = None
        self.scroll_direction: Optional[ScrollDirection] = None
        self.is_scrolling = False

        # Replaced (never mutated) so measurements see the change.
        self._item_size_cache: Mapping[Any, int] = MappingProxyType({})

        self._tracker: Optional[ViewportTracker] = None
        self._attach_generation = 0

        self._build_getters()

    def __repr__(self) -> str:
        return (
            f"TreeVirtualizer(nodes={len(self._store)}, visible={self.count}, "
            f"expanded={len(self._store.expanded_ids)})"
        )

    def _build_getters(self) -> None:
        debug = lambda: self.options.debug  # noqa: E731

        self.get_visible_nodes: Callable[[], List[TreeItem]] = memo(
            lambda: [self._projector.visible()],
            lambda visible: list(visible),
            key="get_visible_nodes",
            debug=debug,
        )
        self.get_measurements: Callable[[], List[VirtualItem]] = memo(
            lambda: [self._projector.visible(), self._item_size_cache, self.options],
            self._compute_measurements,
            key="get_measurements",
            debug=debug,
        )
        self.calculate_range: Callable[[], Optional[Tuple[int, int]]] = memo(
            lambda: [
                self.get_measurements(),
                self._get_size(),
                self._get_scroll_offset(),
                self.options.lanes,
            ],
            self._compute_range,
            key="calculate_range",
            debug=debug,
        )
        self.get_indexes: Callable[[], List[int]] = memo(
            lambda: [
                self.options.range_extractor,
                self.calculate_range(),
                self.options.overscan,
                self.count,
            ],
            self._compute_indexes,
            key="get_indexes",
            debug=debug,
        )
        self.get_virtual_items: Callable[[], List[VirtualItem]] = memo(
            lambda: [self.get_indexes(), self.get_measurements()],
            lambda indexes, measurements: [measurements[i] for i in indexes],
            key="get_virtual_items",
            debug=debug,
        )
        self._maybe_notify: Callable[[], None] = memo(
            self._notify_deps,
            lambda is_scrolling, start, end: self._notify(False),
            key="maybe_notify",
            debug=debug,
            initial_deps=(False, None, None),
        )

    # ------------------------------------------------------------------
    # Options and listeners
    # ------------------------------------------------------------------

    def set_options(self, **overrides: Any) -> None:
        """Replace options; derived getters recompute on next access.

        Changing the scroll axis, direction or reset delay while attached
        re-attaches to the same container.
        """
        previous = self.options
        self.options = previous.with_overrides(**overrides)
        container = self.scroll_element
        if container is None:
            return
        if not self.options.enabled:
            self.teardown()
            return
        observed = ("horizontal", "is_rtl", "is_scrolling_reset_delay")
        if any(getattr(previous, name) != getattr(self.options, name) for name in observed):
            self.teardown()
            self.attach(container)

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener; returns an idempotent unsubscribe."""
        return self._notifier.subscribe(listener)

    def _notify(self, is_synchronous: bool) -> None:
        self._notifier.notify(self, is_synchronous)

    def _notify_deps(self) -> Tuple[bool, Optional[int], Optional[int]]:
        window = self.calculate_range()
        return (
            self.is_scrolling,
            window[0] if window is not None else None,
            window[1] if window is not None else None,
        )

    # ------------------------------------------------------------------
    # Tree data and selection
    # ------------------------------------------------------------------

    @property
    def data(self) -> Tuple[TreeItem, ...]:
        return self._store.data

    @property
    def count(self) -> int:
        """Number of visible nodes."""
        return len(self._projector)

    def find(self, node_id: NodeId) -> Optional[TreeItem]:
        return self._store.find(node_id)

    def get_display_value(self, node: Union[TreeItem, int]) -> Any:
        """Display value of a node, or of the visible node at an index."""
        if not isinstance(node, TreeItem):
            node = self._projector.visible()[node]
        return node.get_field(self.accessor_key)

    def get_selected_id(self) -> Optional[NodeId]:
        return self.selected_id

    def set_selected_id(self, node_id: Optional[NodeId]) -> None:
        self.selected_id = node_id
        self._notify(True)

    # ------------------------------------------------------------------
    # Expansion
    # ------------------------------------------------------------------

    def get_expanded_nodes(self) -> FrozenSet[NodeId]:
        return self._store.expanded_ids

    def is_expanded(self, node_id: NodeId) -> bool:
        return self._store.is_expanded(node_id)

    def set_expanded_nodes(self, node_ids: Iterable[NodeId]) -> None:
        """Replace the expanded set and rebuild the visible sequence."""
        self._store.replace_expanded(node_ids)
        self._projector.rebuild()
        self._notify(True)

    def toggle_node(self, node_id: NodeId, visible_index: int) -> None:
        """Flip a node's expansion at its position in ``get_visible_nodes()``.

        Unknown ids are ignored.
        """
        if node_id not in self._store:
            return
        expand = not self._store.is_expanded(node_id)
        self._projector.apply(node_id, visible_index, expand)
        self._notify(True)

    def expand_node(self, node_id: NodeId, visible_index: int = -1) -> None:
        if node_id not in self._store:
            return
        self._projector.apply(node_id, visible_index, True)
        self._notify(True)

    def collapse_node(self, node_id: NodeId, visible_index: int = -1) -> None:
        if node_id not in self._store:
            return
        self._projector.apply(node_id, visible_index, False)
        self._notify(True)

    def ancestor_chain(self, node_id: NodeId) -> List[NodeId]:
        """``node_id`` followed by its ancestors up to the root."""
        return self._store.ancestor_chain(node_id)

    def reveal(self, node_id: NodeId) -> int:
        """Expand every ancestor of a node so that it becomes visible.

        Returns:
            The node's visible index, or -1 for unknown or unreachable ids.
        """
        chain = self._store.ancestor_chain(node_id)
        if not chain:
            return -1
        for ancestor_id in reversed(chain[1:]):
            if not self._store.is_expanded(ancestor_id):
                self._projector.apply(ancestor_id, -1, True)
        self._notify(True)
        for position, node in enumerate(self._projector.visible()):
            if node.id == node_id:
                return position
        return -1

    # ------------------------------------------------------------------
    # Viewport lifecycle
    # ------------------------------------------------------------------

    @property
    def scroll_element(self) -> Optional[QAbstractScrollArea]:
        return self._tracker.container if self._tracker is not None else None

    def attach(self, container: QAbstractScrollArea) -> Callable[[], None]:
        """Start tracking a scroll container.

        Returns:
            A disposer equivalent to ``teardown()`` for this attachment; safe
            to call more than once.
        """
        if not self.options.enabled:
            self._maybe_notify()
            return lambda: None
        if self._tracker is not None and self._tracker.container is container:
            generation = self._attach_generation
            return lambda: self._dispose(generation)

        self.teardown()
        self._attach_generation += 1
        generation = self._attach_generation
        self._tracker = ViewportTracker(
            on_rect=self._handle_rect,
            on_offset=self._handle_offset,
            horizontal=self.options.horizontal,
            is_rtl=self.options.is_rtl,
            is_scrolling_reset_delay=self.options.is_scrolling_reset_delay,
        )
        self._tracker.attach(container)
        return lambda: self._dispose(generation)

    def _dispose(self, generation: int) -> None:
        if generation == self._attach_generation:
            self.teardown()

    def teardown(self) -> None:
        """Detach from the scroll container and cancel pending timers. Idempotent."""
        if self._tracker is None:
            return
        self._tracker.detach()
        self._tracker = None
        self._attach_generation += 1
        self.scroll_rect = None
        self.scroll_offset = None
        self.scroll_direction = None
        self.is_scrolling = False

    def _handle_rect(self, rect: Rect) -> None:
        self.scroll_rect = rect
        self._maybe_notify()

    def _handle_offset(
        self, offset: int, is_scrolling: bool, direction: Optional[ScrollDirection]
    ) -> None:
        self.scroll_offset = offset
        self.is_scrolling = is_scrolling
        self.scroll_direction = direction
        self._maybe_notify()

    def _get_size(self) -> int:
        if not self.options.enabled:
            self.scroll_rect = None
            return 0
        rect = self.scroll_rect if self.scroll_rect is not None else self.options.initial_rect
        return rect.width if self.options.horizontal else rect.height

    def _get_scroll_offset(self) -> int:
        if not self.options.enabled:
            self.scroll_offset = None
            return 0
        if self.scroll_offset is None:
            self.scroll_offset = self.options.resolve_initial_offset()
        return self.scroll_offset

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def _compute_measurements(
        self,
        visible: Sequence[TreeItem],
        size_cache: Mapping[Any, int],
        options: TreeVirtualizerOptions,
    ) -> List[VirtualItem]:
        lanes = options.lanes
        measurements: List[VirtualItem] = []
        for index, node in enumerate(visible):
            key = options.get_item_key(index)
            if index >= lanes:
                start = measurements[index - lanes].end + options.gap
            else:
                start = options.padding_start + options.scroll_margin
            size = size_cache.get(key)
            if size is None:
                size = options.estimate_size(index)
            measurements.append(
                VirtualItem(
                    index=index,
                    key=key,
                    start=start,
                    end=start + size,
                    size=size,
                    lane=index % lanes,
                    node=node,
                )
            )
        return measurements

    @staticmethod
    def _compute_range(
        measurements: Sequence[VirtualItem],
        outer_size: int,
        scroll_offset: int,
        lanes: int,
    ) -> Optional[Tuple[int, int]]:
        if not measurements:
            return None
        last_index = len(measurements) - 1
        if len(measurements) <= lanes:
            return (0, last_index)

        viewport_end = scroll_offset + outer_size
        start_index = _find_nearest(0, last_index, lambda i: measurements[i].start, scroll_offset)
        end_index = start_index

        if lanes == 1:
            while end_index < last_index and measurements[end_index].end < viewport_end:
                end_index += 1
            return (start_index, end_index)

        end_per_lane = [0] * lanes
        while end_index < last_index and any(pos < viewport_end for pos in end_per_lane):
            item = measurements[end_index]
            end_per_lane[item.lane] = item.end
            end_index += 1

        start_per_lane = [viewport_end] * lanes
        while start_index >= 0 and any(pos >= scroll_offset for pos in start_per_lane):
            item = measurements[start_index]
            start_per_lane[item.lane] = item.start
            start_index -= 1

        # Widen to whole rows of lanes.
        start_index = max(0, start_index - (start_index % lanes))
        end_index = min(last_index, end_index + (lanes - 1 - (end_index % lanes)))
        return (start_index, end_index)

    @staticmethod
    def _compute_indexes(
        range_extractor: Callable[[Range], List[int]],
        window: Optional[Tuple[int, int]],
        overscan: int,
        count: int,
    ) -> List[int]:
        if window is None:
            return []
        return range_extractor(
            Range(start_index=window[0], end_index=window[1], overscan=overscan, count=count)
        )

    def get_total_size(self) -> int:
        """Scrollable extent of all visible rows, including padding."""
        measurements = self.get_measurements()
        if not measurements:
            end = self.options.padding_start
        else:
            end = max(item.end for item in measurements[-self.options.lanes :])
        return max(end - self.options.scroll_margin + self.options.padding_end, 0)

    # ------------------------------------------------------------------
    # Measuring
    # ------------------------------------------------------------------

    def index_from_element(self, element: QObject) -> int:
        """Read the index property of a measured widget; -1 when absent."""
        attribute_name = self.options.index_attribute
        value = element.property(attribute_name)
        if value is None or value == "":
            logger.warning(
                f"Missing attribute name '{attribute_name}={{index}}' on measured element."
            )
            return -1
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning(f"Invalid '{attribute_name}' value {value!r} on measured element.")
            return -1

    def resize_item(self, index: int, size: int) -> None:
        """Record the measured extent of the visible row at ``index``."""
        measurements = self.get_measurements()
        if not 0 <= index < len(measurements):
            return
        item = measurements[index]
        if approx_equal(size, item.size):
            return
        self._item_size_cache = MappingProxyType({**self._item_size_cache, item.key: size})
        self._notify(False)

    def measure_element(self, element: QObject) -> None:
        """Measure a rendered row widget and record its size."""
        index = self.index_from_element(element)
        if index < 0:
            return
        size = element.width() if self.options.horizontal else element.height()
        self.resize_item(index, int(size))

    # ------------------------------------------------------------------
    # Scrolling
    # ------------------------------------------------------------------

    def get_offset_for_alignment(self, to_offset: float, align: ScrollAlignment) -> int:
        size = self._get_size()
        scroll_offset = self._get_scroll_offset()
        if align is ScrollAlignment.AUTO:
            align = ScrollAlignment.END if to_offset >= scroll_offset + size else ScrollAlignment.START
        if align is ScrollAlignment.END:
            to_offset -= size
        elif align is ScrollAlignment.CENTER:
            to_offset -= size / 2
        max_offset = self.get_total_size() - size
        return int(round(max(min(max_offset, to_offset), 0)))

    def get_offset_for_index(
        self, index: int, align: ScrollAlignment = ScrollAlignment.AUTO
    ) -> Optional[Tuple[int, ScrollAlignment]]:
        """Scroll offset that brings a visible row into view, and the alignment used."""
        measurements = self.get_measurements()
        if not measurements:
            return None
        index = max(0, min(index, len(measurements) - 1))
        item = measurements[index]
        size = self._get_size()
        scroll_offset = self._get_scroll_offset()

        if align is ScrollAlignment.AUTO:
            if item.end >= scroll_offset + size - self.options.scroll_padding_end:
                align = ScrollAlignment.END
            elif item.start <= scroll_offset + self.options.scroll_padding_start:
                align = ScrollAlignment.START
            else:
                return (scroll_offset, align)

        if align is ScrollAlignment.END:
            to_offset: float = item.end + self.options.scroll_padding_end
        elif align is ScrollAlignment.CENTER:
            to_offset = item.start + item.size / 2
        else:
            to_offset = item.start - self.options.scroll_padding_start
        return (self.get_offset_for_alignment(to_offset, align), align)

    def scroll_to_offset(self, to_offset: int, align: ScrollAlignment = ScrollAlignment.START) -> None:
        if self._tracker is None:
            logger.debug("scroll_to_offset ignored: no scroll container attached")
            return
        self._tracker.scroll_to_offset(self.get_offset_for_alignment(to_offset, align))

    def scroll_to_index(self, index: int, align: ScrollAlignment = ScrollAlignment.AUTO) -> None:
        if self._tracker is None:
            logger.debug("scroll_to_index ignored: no scroll container attached")
            return
        target = self.get_offset_for_index(index, align)
        if target is None:
            return
        self._tracker.scroll_to_offset(target[0])


def create_virtualized_tree(
    data: TreeData,
    accessor_key: str,
    options: Optional[TreeVirtualizerOptions] = None,
    **overrides: Any,
) -> TreeVirtualizer:
    """Create a TreeVirtualizer over ``data``."""
    return TreeVirtualizer(data, accessor_key, options, **overrides)
