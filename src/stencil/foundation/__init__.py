"""Foundation layer: errors, configuration, logging, and shared types.

Nothing here imports from the pipeline, queue, or server layers.
"""
