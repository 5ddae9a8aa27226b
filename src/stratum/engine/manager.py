"""Orchestrates loading, merging, interpolation and validation of configuration."""

from __future__ import annotations

import asyncio
import copy
import inspect
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from stratum.common import create_logger
from stratum.utils.functools.models import Err, Ok, Result, is_err

from .cache import ResolutionCache, fragments_checksum
from .changes import diff as diff_documents
from .interpolation import InterpolationContext, Interpolator, ResolverRegistry
from .merger import merge
from .models import (
    ConfigChangeEvent,
    ConfigDiff,
    Diagnostic,
    ErrorCode,
    Fragment,
    ResolutionFailure,
    Severity,
    Snapshot,
    SourceInfo,
    SourceLoadError,
    SourceStatus,
)
from .options import ResolutionOptions
from .paths import get_value
from .protocol import SourceLoader
from .validation import SchemaLike, ValidationPipeline, ValidationRule

logger = create_logger("engine.manager")

type ChangeCallback = Callable[[ConfigChangeEvent], None | Awaitable[None]]
type ConfigTransform = Callable[[dict[str, Any]], Mapping[str, Any] | Awaitable[Mapping[str, Any]]]
type SourceSetKey = tuple[int, ...]


class Subscription:
    """Handle returned by :meth:`ResolutionManager.watch`."""

    def __init__(self, watchers: list[ChangeCallback], callback: ChangeCallback) -> None:
        self._watchers = watchers
        self._callback = callback

    @property
    def active(self) -> bool:
        return self._callback in self._watchers

    def cancel(self) -> None:
        if self.active:
            self._watchers.remove(self._callback)


class ResolutionManager:
    """Single entry point for resolving configuration from ranked sources.

    A resolution loads every source concurrently, then merges, interpolates and
    validates. Successful documents are cached by a checksum of their fragments.
    A failed resolution never replaces the last good document.

    Args:
        schema: Pydantic model (or ``Schema`` implementation) to validate against
        rules: Custom validation rules
        options: Merge, interpolation, validation, cache and timeout options
        registry: Resolvers available to placeholders
        context: Interpolation context; a fresh one is built per resolution when omitted
        transforms: Functions applied in order to the interpolated document before
            validation; each may be a coroutine and must return a mapping
        clock: Monotonic clock used for cache expiry
    """

    def __init__(
        self,
        schema: SchemaLike | None = None,
        rules: Iterable[ValidationRule] = (),
        options: ResolutionOptions | None = None,
        registry: ResolverRegistry | None = None,
        context: InterpolationContext | None = None,
        *,
        transforms: Iterable[ConfigTransform] = (),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.options = options or ResolutionOptions()
        self.interpolator = Interpolator(registry, self.options.interpolation)
        self.pipeline = ValidationPipeline(schema, self.options.validation, rules)
        self.context = context
        self.transforms = list(transforms)
        self.cache = ResolutionCache(
            ttl=self.options.cache.ttl,
            max_size=self.options.cache.max_size,
            clock=clock,
        )
        transform_names = ",".join(_qualified_name(item) for item in self.transforms)
        self._fingerprint = f"{self.options.fingerprint()}|{transform_names}"
        self._in_flight: dict[SourceSetKey, asyncio.Task[Result[dict[str, Any], ResolutionFailure]]] = {}
        self._current: dict[str, Any] | None = None
        self._sources: list[SourceInfo] = []
        self._warnings: list[Diagnostic] = []
        self._watchers: list[ChangeCallback] = []

    @property
    def current(self) -> dict[str, Any] | None:
        """Last successfully resolved (or restored) document."""
        return copy.deepcopy(self._current)

    @property
    def sources(self) -> list[SourceInfo]:
        return list(self._sources)

    @property
    def warnings(self) -> list[Diagnostic]:
        """Non-blocking diagnostics from the last successful resolution."""
        return list(self._warnings)

    def get(self, path: str, default: Any = None) -> Any:
        if self._current is None:
            return default
        return copy.deepcopy(get_value(self._current, path, default))

    async def resolve(self, sources: Sequence[SourceLoader]) -> Result[dict[str, Any], ResolutionFailure]:
        """Resolve ``sources`` into a validated document.

        Concurrent calls passing the same loader objects, in the same order,
        share one in-flight resolution; every caller receives its own copy of
        the result.
        """
        key = _source_set_key(sources)
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(self._resolve(list(sources)))
            self._in_flight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        else:
            logger.debug("Joining in-flight resolution", sources=[loader.source for loader in sources])

        result = await asyncio.shield(task)
        return result.map(copy.deepcopy)

    def diff(self, old: Mapping[str, Any] | None, new: Mapping[str, Any] | None) -> ConfigDiff:
        return diff_documents(old, new)

    def watch(self, callback: ChangeCallback) -> Subscription:
        self._watchers.append(callback)
        return Subscription(self._watchers, callback)

    def snapshot(self, metadata: Mapping[str, Any] | None = None) -> Result[Snapshot, ResolutionFailure]:
        if self._current is None:
            return Err(
                ResolutionFailure(
                    code=ErrorCode.NOT_RESOLVED,
                    message="Nothing has been resolved yet; there is no document to snapshot.",
                )
            )
        return Ok(
            Snapshot(
                document=copy.deepcopy(self._current),
                sources=list(self._sources),
                metadata=dict(metadata or {}),
            )
        )

    async def restore(self, snapshot: Snapshot) -> None:
        logger.info("Restoring snapshot", snapshot_id=snapshot.id, taken_at=snapshot.timestamp.isoformat())
        await self._accept(copy.deepcopy(snapshot.document), list(snapshot.sources))

    async def invalidate(self) -> None:
        await self.cache.clear()
        logger.debug("Resolution cache cleared")

    async def add_rule(self, validation_rule: ValidationRule) -> None:
        """Register a rule for later resolutions; cached results are dropped."""
        self.pipeline.add_rule(validation_rule)
        await self.invalidate()

    async def remove_rule(self, name: str) -> bool:
        removed = self.pipeline.remove_rule(name)
        if removed:
            await self.invalidate()
        return removed

    def _forget(self, key: SourceSetKey, task: asyncio.Task[Any]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _resolve(self, sources: list[SourceLoader]) -> Result[dict[str, Any], ResolutionFailure]:
        started = time.perf_counter()

        loaded = await self._load_all(sources)
        if is_err(loaded):
            return loaded
        fragments, infos = loaded.ok_value

        warnings: list[Diagnostic] = []
        cache_key = self._cache_key(fragments, warnings)
        if cache_key is not None:
            cached = self.cache.lookup(cache_key)
            if cached is not None:
                document, cached_warnings = cached
                logger.debug("Resolution cache hit", key=cache_key[:12])
                self._warnings = [*cached_warnings, *warnings]
                await self._accept(document, infos)
                return Ok(document)

        merged = merge(fragments, self.options.merge)

        interpolated = self.interpolator.interpolate(merged, self.context or InterpolationContext())
        if is_err(interpolated):
            error = interpolated.err_value
            logger.error("Interpolation failed", code=error.code.value, message=error.message)
            return Err(
                ResolutionFailure(
                    code=error.code,
                    message=error.message,
                    diagnostics=[error.to_diagnostic()],
                )
            )

        transformed = await self._transform(interpolated.ok_value)
        if is_err(transformed):
            return transformed

        validated = self.pipeline.validate(transformed.ok_value)
        if not validated.success or validated.data is None:
            logger.error(
                "Validation failed",
                errors=[f"{d.dotted_path}: {d.message}" for d in validated.errors],
            )
            return Err(
                ResolutionFailure(
                    code=ErrorCode.VALIDATION_ERROR,
                    message=f"Configuration is invalid: {len(validated.errors)} error(s).",
                    diagnostics=[*validated.errors, *validated.warnings, *warnings],
                )
            )

        document = validated.data
        if cache_key is not None and self.options.cache.enabled:
            await self.cache.set(cache_key, document, validated.warnings)

        self._warnings = [*validated.warnings, *warnings]
        await self._accept(document, infos)
        logger.info(
            "Configuration resolved",
            sources=[info.source for info in infos if info.status is SourceStatus.LOADED],
            warnings=len(self._warnings),
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return Ok(document)

    async def _transform(self, document: dict[str, Any]) -> Result[dict[str, Any], ResolutionFailure]:
        for transform in self.transforms:
            name = _qualified_name(transform)
            try:
                outcome = transform(copy.deepcopy(document))
                if inspect.isawaitable(outcome):
                    outcome = await outcome
            except Exception as exc:  # noqa: BLE001 - reported as a resolution failure
                logger.opt(exception=exc).error("Transform failed", transform=name)
                return Err(
                    ResolutionFailure(
                        code=ErrorCode.TRANSFORM_ERROR,
                        message=f"Transform '{name}' raised {type(exc).__name__}: {exc}",
                    )
                )
            if not isinstance(outcome, Mapping):
                return Err(
                    ResolutionFailure(
                        code=ErrorCode.TRANSFORM_ERROR,
                        message=f"Transform '{name}' returned {type(outcome).__name__}, expected a mapping",
                    )
                )
            document = dict(outcome)
        return Ok(document)

    def _cache_key(self, fragments: list[Fragment], warnings: list[Diagnostic]) -> str | None:
        if not self.options.cache.enabled:
            return None
        try:
            return fragments_checksum(fragments, self._fingerprint)
        except (TypeError, ValueError) as exc:
            logger.warning("Checksum failed, resolving uncached", error=str(exc))
            warnings.append(
                Diagnostic(
                    code=ErrorCode.CACHE_CHECKSUM_ERROR,
                    message=f"Could not checksum fragments: {exc}",
                    severity=Severity.WARNING,
                )
            )
            return None

    async def _load_all(
        self,
        sources: list[SourceLoader],
    ) -> Result[tuple[list[Fragment], list[SourceInfo]], ResolutionFailure]:
        outcomes = await asyncio.gather(*(self._load_one(loader) for loader in sources))

        fragments: list[Fragment] = []
        infos: list[SourceInfo] = []
        fatal: list[SourceLoadError] = []
        for loader, outcome in zip(sources, outcomes, strict=True):
            required = bool(getattr(loader, "required", False))
            match outcome:
                case Ok(fragment):
                    fragments.append(fragment)
                    infos.append(
                        SourceInfo(
                            source=loader.source,
                            priority=loader.priority,
                            required=required,
                            loaded_at=fragment.loaded_at,
                        )
                    )
                case Err(error):
                    infos.append(
                        SourceInfo(
                            source=loader.source,
                            priority=loader.priority,
                            required=required,
                            status=SourceStatus.ERROR,
                            error=error.message,
                        )
                    )
                    if required:
                        logger.error("Required source failed", source=loader.source, error=error.message)
                        fatal.append(error)
                    else:
                        logger.warning("Optional source failed, skipping", source=loader.source, error=error.message)

        if fatal:
            return Err(
                ResolutionFailure(
                    code=fatal[0].code,
                    message=f"Required source '{fatal[0].source}' failed: {fatal[0].message}",
                    diagnostics=[error.to_diagnostic() for error in fatal],
                )
            )
        return Ok((fragments, infos))

    async def _load_one(self, loader: SourceLoader) -> Result[Fragment, SourceLoadError]:
        timeout = getattr(loader, "timeout", None)
        if timeout is None:
            timeout = self.options.loader_timeout

        try:
            async with asyncio.timeout(timeout):
                if inspect.iscoroutinefunction(loader.load):
                    raw = await loader.load()
                else:
                    raw = await asyncio.to_thread(loader.load)
                if inspect.isawaitable(raw):
                    raw = await raw
        except TimeoutError:
            return Err(
                SourceLoadError(
                    code=ErrorCode.NETWORK_TIMEOUT,
                    source=loader.source,
                    message=f"Timed out after {timeout}s",
                )
            )
        except Exception as exc:  # noqa: BLE001 - loader failures are reported per source
            logger.opt(exception=exc).debug("Source loader raised", source=loader.source)
            return Err(SourceLoadError(source=loader.source, message=f"{type(exc).__name__}: {exc}"))

        match raw:
            case Ok(data):
                raw = data
            case Err(error) if isinstance(error, SourceLoadError):
                return Err(error)
            case Err(error):
                return Err(SourceLoadError(source=loader.source, message=str(error)))

        if not isinstance(raw, Mapping):
            return Err(
                SourceLoadError(
                    source=loader.source,
                    message=f"Loader returned {type(raw).__name__}, expected a mapping",
                )
            )

        try:
            fragment = Fragment(source=loader.source, priority=loader.priority, data=dict(raw))
        except ValidationError as exc:
            return Err(SourceLoadError(source=loader.source, message=f"Invalid fragment: {exc.errors()[0]['msg']}"))

        logger.debug("Source loaded", source=loader.source, priority=loader.priority, keys=len(fragment.data))
        return Ok(fragment)

    async def _accept(self, document: dict[str, Any], infos: list[SourceInfo]) -> None:
        previous = self._current
        self._current = copy.deepcopy(document)
        self._sources = infos

        change = diff_documents(previous, document)
        if not change.has_changes:
            return
        event = ConfigChangeEvent(diff=change, old=copy.deepcopy(previous), new=copy.deepcopy(document))
        await self._notify(event)

    async def _notify(self, event: ConfigChangeEvent) -> None:
        for callback in list(self._watchers):
            try:
                outcome = callback(event.model_copy(deep=True))
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:  # noqa: BLE001 - one broken watcher must not fail resolution
                logger.exception("Change callback failed", callback=getattr(callback, "__name__", repr(callback)))


def _qualified_name(function: Callable[..., Any]) -> str:
    return f"{getattr(function, '__module__', '')}.{getattr(function, '__qualname__', repr(function))}"


def _source_set_key(sources: Sequence[SourceLoader]) -> SourceSetKey:
    # The in-flight task holds the loaders, so their ids stay unique until it finishes
    return tuple(id(loader) for loader in sources)


__all__ = ["ChangeCallback", "ConfigTransform", "ResolutionManager", "Subscription"]
