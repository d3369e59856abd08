"""Pipeline name to Zulip stream routing."""

from __future__ import annotations

# (prefix, suffixes) in match order; the first matching prefix wins and at
# most one suffix is stripped.
ROUTING_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("lang-", ("-x-private", "-public")),
    ("keyboard-", ("-public", "-private")),
)


def route(pipeline_name: str, default_channel: str) -> str:
    """Pick the stream for a pipeline.

    ``lang-<name>-x-private`` and ``keyboard-<name>-public`` style pipelines
    go to the ``<name>`` stream.  Everything else, including names that
    reduce to nothing, goes to ``default_channel``.
    """
    for prefix, suffixes in ROUTING_RULES:
        if not pipeline_name.startswith(prefix):
            continue
        remainder = pipeline_name[len(prefix):]
        for suffix in suffixes:
            if remainder.endswith(suffix):
                remainder = remainder[: -len(suffix)]
                break
        return remainder or default_channel

    return default_channel
