"""dcup: bring devcontainer sessions up and tear them down from an editor."""

from dcup.lifecycle import LifecycleController, UpOperation

__all__ = ["LifecycleController", "UpOperation"]
