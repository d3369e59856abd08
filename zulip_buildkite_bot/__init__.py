"""zulip-buildkite-bot - forwards Buildkite webhook events to Zulip."""
__version__ = "0.1.0"
