"""
Core application engine for orchestrating downloads.

The `JobQueueDriver` feeds queued requests, one at a time, to the
`JobRunner`, which runs the external download tool, streams its output, and
writes playlist manifests for finished playlist downloads.
"""
