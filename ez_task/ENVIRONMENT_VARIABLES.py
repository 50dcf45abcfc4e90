from typed_envs import EnvVarFactory

envs = EnvVarFactory("EZTASK")

# We have some envs here to help you debug your task bodies

DEBUG_MODE = envs.create_env("DEBUG_MODE", bool, default=False, verbose=False)
"""bool: Enables debug logging for every frame.

Set this environment variable to `True` to set the level of the ``ez_task`` logger
to DEBUG, which logs every suspension, resumption and final resolution.

Examples:
    .. code-block:: bash

        export EZTASK_DEBUG_MODE=True
"""

ABORT_ON_INCOMPLETE_DESTROY = envs.create_env(
    "ABORT_ON_INCOMPLETE_DESTROY", bool, default=False, verbose=False
)
"""bool: Abort the process when a running frame is garbage collected.

Destroying a frame that has not finished is a programming error. By default the
violation is logged and reported through :func:`sys.unraisablehook`, since
exceptions cannot escape ``__del__``. Set this to `True` to turn it into a hard
:func:`os.abort`.

See Also:
    :class:`~ez_task.exceptions.IncompleteFrameDestroyed`
"""

TRACK_FRAMES = envs.create_env("TRACK_FRAMES", bool, default=False, verbose=False)
"""bool: Keep a count of live frames.

When enabled, every frame increments a global counter on creation and decrements it
when its owning :class:`~ez_task.Task` destroys it. Read the count with
:func:`ez_task._frame.live_frames`. Useful in test suites to detect leaked frames.
"""
