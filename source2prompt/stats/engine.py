"""Incremental statistics and token estimation over a selection.

Every input change starts a new generation. A run for a generation waits out
a short debounce window, publishes a complete estimate straight away (using
cached or conservative per-file token counts) and then refines the files
that need an expensive transform-and-count pass, re-checking its generation
before each step. A run that finds a newer generation has started drops its
work instead of publishing it.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from source2prompt.config import StatsConfig
from source2prompt.scanner.models import FileNode, ScanSnapshot
from source2prompt.tokens import count_tokens, estimate_tokens_from_bytes
from source2prompt.transform import TransformOptions, transform_file_content

logger = logging.getLogger(__name__)

DEFAULT_PREAMBLE = (
    "The following are the complete project code files for my app. "
    "Below is a comprehensive collection of the project's source files."
)

Transform = Callable[[FileNode, TransformOptions], str]
TokenCounter = Callable[[str], int]
UpdateCallback = Callable[["StatsResult"], None]


@dataclass(frozen=True)
class StatsResult:
    file_count: int = 0
    size_bytes: int = 0
    line_count: int = 0
    token_count: int = 0


@dataclass(frozen=True)
class PromptText:
    """Free text placed ahead of the files; counted into the token total."""

    include_preamble: bool = False
    preamble: str = DEFAULT_PREAMBLE
    include_goal: bool = False
    goal: str = ""

    def token_count(self, count: TokenCounter) -> int:
        total = 0
        if self.include_preamble and self.preamble.strip():
            total += count(self.preamble)
        if self.include_goal and self.goal.strip():
            total += count(self.goal)
        return total


@dataclass
class TokenCache:
    """Transformed token counts keyed by (file path, option fingerprint)."""

    _entries: dict[tuple[str, str], int] = field(default_factory=dict)
    hits: int = 0
    misses: int = 0

    def get(self, path: str, fingerprint: str) -> int | None:
        value = self._entries.get((path, fingerprint))
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    def put(self, path: str, fingerprint: str, tokens: int) -> None:
        self._entries[(path, fingerprint)] = tokens

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class StatsInputs:
    snapshot: ScanSnapshot | None = None
    selection: frozenset[str] = frozenset()
    options: TransformOptions = TransformOptions()
    prompt: PromptText = PromptText()


def selected_text_files(
    snapshot: ScanSnapshot | None, selection: Iterable[str]
) -> list[FileNode]:
    if snapshot is None:
        return []
    selected = selection if isinstance(selection, (set, frozenset)) else set(selection)
    return [
        f for f in snapshot.flat_files if not f.is_directory and f.is_text and f.path in selected
    ]


def _byte_estimate(text: str) -> int:
    return estimate_tokens_from_bytes(len(text.encode("utf-8")))


def fallback_tokens(node: FileNode) -> int:
    """Best estimate available without reading the file again."""
    if node.tokens is not None:
        return node.tokens
    return estimate_tokens_from_bytes(node.size_bytes)


class StatsEngine:
    """Keeps a :class:`StatsResult` in step with snapshot, selection and options."""

    def __init__(
        self,
        transform: Transform = transform_file_content,
        count: TokenCounter = count_tokens,
        config: StatsConfig | None = None,
        on_update: UpdateCallback | None = None,
    ):
        self.transform = transform
        self.count = count
        self.config = config or StatsConfig()
        self.on_update = on_update
        self.cache = TokenCache()
        self.generation = 0
        self._inputs = StatsInputs()
        self._result = StatsResult()
        self._task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def result(self) -> StatsResult:
        return self._result

    @property
    def inputs(self) -> StatsInputs:
        return self._inputs

    def update(
        self,
        *,
        snapshot: ScanSnapshot | None = None,
        selection: Iterable[str] | None = None,
        options: TransformOptions | None = None,
        prompt: PromptText | None = None,
    ) -> int:
        """Replace any given inputs and schedule a recompute.

        Must be called from a running event loop. Returns the new generation.
        """
        current = self._inputs
        if snapshot is not None and snapshot is not current.snapshot:
            self.cache.clear()
        self._inputs = StatsInputs(
            snapshot=snapshot if snapshot is not None else current.snapshot,
            selection=frozenset(selection) if selection is not None else current.selection,
            options=options if options is not None else current.options,
            prompt=prompt if prompt is not None else current.prompt,
        )
        self.generation += 1
        task = asyncio.get_running_loop().create_task(
            self._run(self.generation, self._inputs, debounce=True)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._task = task
        return self.generation

    async def wait(self) -> StatsResult:
        """Wait until the run for the newest generation has finished."""
        while self._task is not None:
            task = self._task
            await task
            if task is self._task:
                break
        return self._result

    async def drain(self) -> StatsResult:
        """Wait for every outstanding run, stale ones included."""
        while self._tasks:
            await asyncio.gather(*self._tasks)
        return self._result

    async def compute(self, inputs: StatsInputs) -> StatsResult:
        """Run one generation without debouncing and return its final value."""
        self.generation += 1
        if inputs.snapshot is not self._inputs.snapshot:
            self.cache.clear()
        self._inputs = inputs
        self._task = None
        await self._run(self.generation, inputs, debounce=False)
        return self._result

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def _publish(self, generation: int, result: StatsResult) -> bool:
        if not self.is_current(generation):
            logger.debug("Dropping stale stats for generation %d", generation)
            return False
        self._result = result
        if self.on_update is not None:
            self.on_update(result)
        return True

    async def _run(self, generation: int, inputs: StatsInputs, debounce: bool) -> None:
        if debounce:
            await asyncio.sleep(self.config.debounce_seconds)
        if not self.is_current(generation):
            return

        files = selected_text_files(inputs.snapshot, inputs.selection)
        file_count = len(files)
        size_bytes = sum(f.size_bytes for f in files)
        line_count = sum(max(0, f.num_lines) for f in files)

        def result_for(tokens: int) -> StatsResult:
            return StatsResult(file_count, size_bytes, line_count, tokens)

        options = inputs.options
        fingerprint = options.fingerprint
        total = self._prompt_tokens(inputs.prompt)
        pending: list[tuple[FileNode, int]] = []

        for f in files:
            if not options.active or f.size_bytes > self.config.read_ceiling_bytes:
                total += fallback_tokens(f)
                continue
            cached = self.cache.get(f.path, fingerprint)
            if cached is not None:
                total += cached
            else:
                estimate = fallback_tokens(f)
                total += estimate
                pending.append((f, estimate))

        if not self._publish(generation, result_for(total)) or not pending:
            return

        for index, (node, estimate) in enumerate(pending):
            if not self.is_current(generation):
                return

            tokens = await self._transformed_tokens(node, options, inputs.snapshot)
            if tokens is not None:
                total += tokens - estimate

            if index % self.config.publish_every == self.config.publish_every - 1:
                self._publish(generation, result_for(total))
            if index % self.config.yield_every == self.config.yield_every - 1:
                await asyncio.sleep(0)

        self._publish(generation, result_for(total))

    async def _transformed_tokens(
        self, node: FileNode, options: TransformOptions, snapshot: ScanSnapshot | None
    ) -> int | None:
        try:
            tokens = await asyncio.to_thread(self._transform_and_count, node, options)
        except Exception as e:
            logger.debug("Keeping fallback estimate for %s: %s", node.rel_path, e)
            return None
        # The cache only holds counts for the current snapshot.
        if snapshot is self._inputs.snapshot:
            self.cache.put(node.path, options.fingerprint, tokens)
        return tokens

    def _transform_and_count(self, node: FileNode, options: TransformOptions) -> int:
        text = self.transform(node, options)
        try:
            return self.count(text)
        except Exception as e:
            logger.debug("Token counting failed for %s: %s", node.rel_path, e)
            return _byte_estimate(text)

    def _prompt_tokens(self, prompt: PromptText) -> int:
        try:
            return prompt.token_count(self.count)
        except Exception as e:
            logger.debug("Token counting failed for prompt text: %s", e)
            return prompt.token_count(_byte_estimate)


async def compute_stats(
    snapshot: ScanSnapshot | None,
    selection: Iterable[str],
    options: TransformOptions | None = None,
    prompt: PromptText | None = None,
    *,
    transform: Transform = transform_file_content,
    count: TokenCounter = count_tokens,
    config: StatsConfig | None = None,
) -> StatsResult:
    """One-shot computation sharing the engine's code path."""
    engine = StatsEngine(transform=transform, count=count, config=config)
    inputs = StatsInputs(
        snapshot=snapshot,
        selection=frozenset(selection),
        options=options or TransformOptions(),
        prompt=prompt or PromptText(),
    )
    return await engine.compute(inputs)
