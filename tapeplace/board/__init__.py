"""Board data model and project persistence."""

from .abstraction import (
    Board,
    BoardShape,
    MountFeature,
    Layer,
    ChannelProfile,
    Pad,
    Hole,
    Component,
    Net,
    Route,
    Via,
    TapeSpec,
    AssemblyComponent,
    PadRef,
    Connection,
    ComponentLookup,
    ArrangementMetrics,
    Arrangement,
    Project,
    default_project,
    rectangular_board,
    circular_board,
)
from .project_file import (
    PROJECT_FILE_VERSION,
    board_from_dict,
    project_to_dict,
    project_from_dict,
    load_project,
    save_project,
)

__all__ = [
    # Core abstractions
    "Board",
    "BoardShape",
    "MountFeature",
    "Layer",
    "ChannelProfile",
    "Pad",
    "Hole",
    "Component",
    "Net",
    "Route",
    "Via",
    "TapeSpec",
    "AssemblyComponent",
    "PadRef",
    "Connection",
    "ComponentLookup",
    "ArrangementMetrics",
    "Arrangement",
    "Project",
    "default_project",
    "rectangular_board",
    "circular_board",
    # Project file persistence
    "PROJECT_FILE_VERSION",
    "board_from_dict",
    "project_to_dict",
    "project_from_dict",
    "load_project",
    "save_project",
]
