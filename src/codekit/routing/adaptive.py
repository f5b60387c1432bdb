"""Desktop/mobile page variants selected by viewport, loaded lazily."""

import importlib
import logging
from typing import Any, Callable, Optional

from ..api.errors import ChunkLoadError
from .chunks import ReloadGuard, classify_error, reload_module
from .viewport import DeviceState, Viewport

logger = logging.getLogger(__name__)

PageCallable = Callable[[dict[str, Any]], str]


def loading_placeholder(context: dict[str, Any]) -> str:
    return '<div class="page-loading" role="status">Loading…</div>'


class PageVariant:
    """A lazily imported page, referenced as ``"package.module:callable"``."""

    def __init__(self, reference: str):
        module_name, _, attr = reference.partition(":")
        if not module_name or not attr:
            raise ValueError(f"Page reference must look like 'module:callable', got {reference!r}")
        self.reference = reference
        self.module_name = module_name
        self.attr = attr
        self._loaded: Optional[PageCallable] = None

    def load(self) -> PageCallable:
        if self._loaded is not None:
            return self._loaded

        module = importlib.import_module(self.module_name)
        page = getattr(module, self.attr, None)
        if page is None:
            raise ImportError(
                f"Module {self.module_name} is missing default export {self.attr}",
                name=self.module_name,
            )
        if not callable(page):
            raise ImportError(
                f"Invalid module {self.module_name}: {self.attr} is not a page",
                name=self.module_name,
            )
        self._loaded = page
        return page

    def forget(self) -> None:
        self._loaded = None


class AdaptivePage:
    """One route with a desktop variant and an optional mobile variant."""

    def __init__(
        self,
        desktop: str,
        mobile: str | None = None,
        reload_guard: ReloadGuard | None = None,
        placeholder: PageCallable = loading_placeholder,
    ):
        self.desktop = PageVariant(desktop)
        self.mobile = PageVariant(mobile) if mobile else None
        self.reload_guard = reload_guard or ReloadGuard()
        self.placeholder = placeholder

    def _load(self, variant: PageVariant) -> PageCallable:
        try:
            return variant.load()
        except Exception as e:
            info = classify_error(e)
            if not info.is_chunk_error:
                raise
            logger.warning(f"Chunk load error for {variant.reference}: {e}")
            if not self.reload_guard.try_acquire():
                raise ChunkLoadError(f"Failed to load page {variant.reference}", info.chunk_name) from e

        reload_module(variant.module_name)
        variant.forget()
        try:
            return variant.load()
        except Exception as e:
            raise ChunkLoadError(
                f"Failed to load page {variant.reference} after reload",
                classify_error(e).chunk_name,
            ) from e

    def resolve(self, state: DeviceState) -> PageCallable:
        """Pick and load the variant for a device state."""
        if state == DeviceState.UNRESOLVED:
            return self.placeholder
        if state == DeviceState.MOBILE and self.mobile is not None:
            try:
                return self._load(self.mobile)
            except ChunkLoadError:
                raise
            except Exception as e:
                logger.warning(f"Mobile page {self.mobile.reference} failed, using desktop: {e}")
        return self._load(self.desktop)

    def mount(self, viewport: Viewport) -> "MountedPage":
        return MountedPage(self, viewport)


class MountedPage:
    """A page bound to a viewport; swaps variant when the device state changes."""

    def __init__(self, page: AdaptivePage, viewport: Viewport):
        self.page = page
        self.viewport = viewport
        self.state = viewport.state
        self.component = page.resolve(self.state)
        self._unsubscribe = viewport.subscribe(self._on_change)

    def _on_change(self, old: DeviceState, new: DeviceState) -> None:
        self.state = new
        self.component = self.page.resolve(new)

    def render(self, context: dict[str, Any]) -> str:
        return self.component(context)

    def unmount(self) -> None:
        self._unsubscribe()


class PageRouter:
    """Registry of adaptive pages keyed by route name."""

    def __init__(
        self,
        reload_guard: ReloadGuard | None = None,
        placeholder: PageCallable = loading_placeholder,
    ):
        self.reload_guard = reload_guard or ReloadGuard()
        self.placeholder = placeholder
        self._pages: dict[str, AdaptivePage] = {}

    def register(self, route: str, desktop: str, mobile: str | None = None) -> AdaptivePage:
        page = AdaptivePage(desktop, mobile, self.reload_guard, self.placeholder)
        self._pages[route] = page
        return page

    def page(self, route: str) -> AdaptivePage:
        return self._pages[route]

    def __contains__(self, route: str) -> bool:
        return route in self._pages

    def render(self, route: str, viewport: Viewport, context: dict[str, Any] | None = None) -> str:
        page = self._pages[route]
        return page.resolve(viewport.state)(context or {})
