"""Launch pipeline: argument building, natives, process supervision and the pack orchestrator."""

from .game_launcher import GameLauncher, LaunchPlan
from .natives import NativeExtractor
from .pack import LaunchSession, PackInstance
from .process import GameProcess, ProcessSupervisor

__all__ = ["GameLauncher", "LaunchPlan", "NativeExtractor", "LaunchSession", "PackInstance",
           "GameProcess", "ProcessSupervisor"]
