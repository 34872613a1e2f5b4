"""Short-Asset Reconciler - fills video beats whose source clip is too short."""

import math
from typing import Any, Optional

from docfactory.core.config import Settings
from docfactory.models.schemas import ShortVideoStrategy


class ShortAssetReconciler:
    """Decides whether a clip is short and builds the fill chain for its beat."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize reconciler.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.epsilon = settings.short_clip_epsilon_seconds

    def is_short(self, target_seconds: float, source_seconds: Optional[float]) -> bool:
        """
        Check whether a clip cannot fill its beat on its own.

        An unknown or non-positive source duration counts as short.

        Args:
            target_seconds: Beat duration
            source_seconds: Probed clip duration, or None

        Returns:
            True if a fill policy is needed
        """
        if source_seconds is None or source_seconds <= 0:
            return True
        return target_seconds > source_seconds + self.epsilon

    def resolve_strategy(self, strategy: Optional[Any]) -> ShortVideoStrategy:
        """Normalize a caller flag (enum, string or None) to a strategy."""
        if strategy is None:
            strategy = self.settings.short_video_strategy
        return ShortVideoStrategy(strategy)

    def fill_filter(
        self,
        target_seconds: float,
        source_seconds: Optional[float],
        strategy: Optional[Any] = None,
    ) -> str:
        """
        Build the timing chain for a video beat.

        Every branch yields a stream of exactly target_seconds.

        Args:
            target_seconds: Beat duration
            source_seconds: Probed clip duration, or None if unknown
            strategy: Fill policy for short clips (defaults to settings)

        Returns:
            Filter chain (no stream labels), starting with an fps normalization
        """
        fps = self.settings.video_fps
        dur = f"{target_seconds:.3f}"

        if not self.is_short(target_seconds, source_seconds):
            # Clips within epsilon of the beat are held on their last frame for the gap
            pad = self.epsilon + 1 / fps
            return f"fps={fps},tpad=stop_mode=clone:stop_duration={pad:.3f},trim=0:{dur},setpts=PTS-STARTPTS"

        policy = self.resolve_strategy(strategy)

        if policy == ShortVideoStrategy.EXTEND_LAST_FRAME:
            # tpad must see the clip's own end; the trim then cuts the held frame at the target
            return (
                f"fps={fps},tpad=stop_mode=clone:stop_duration={dur},"
                f"trim=0:{dur},setpts=PTS-STARTPTS"
            )

        # Loop: buffer the whole clip, repeat it indefinitely, cut at the target
        if source_seconds and source_seconds > 0:
            size = max(1, math.floor(source_seconds * fps))
        else:
            size = max(1, math.ceil(target_seconds * fps))
        return (
            f"fps={fps},loop=loop=-1:size={size}:start=0,"
            f"trim=0:{dur},setpts=N/{fps}/TB"
        )
