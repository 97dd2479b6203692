"""Matplotlib charts for swing trajectories.

``ChartGenerator`` renders to files only (Agg backend) and sits outside the
per-frame path.
"""

from __future__ import annotations

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
from typing import Optional, Sequence

from ..analysis.trajectory import KeyMoments, TrajectoryPoint, VelocityProfile
from ..core.timeline import PhaseSegment


class ChartGenerator:
    """Generate velocity and path charts for one swing."""

    PHASE_COLORS = {
        "address": "#9E9E9E",
        "takeaway": "#8BC34A",
        "backswing": "#4CAF50",
        "top": "#FFC107",
        "downswing": "#FF9800",
        "impact": "#F44336",
        "follow-through": "#2196F3",
    }

    @staticmethod
    def velocity_profile_chart(
        profile: VelocityProfile,
        output_path: str,
        segments: Optional[Sequence[PhaseSegment]] = None,
        key_moments: Optional[KeyMoments] = None,
        title: str = "Club head velocity",
    ) -> str:
        """Velocity over frames with phase bands and key moment markers."""
        if len(profile.velocities) < 2:
            return ""

        # velocity[i] belongs to the interval ending at point i + 1
        frames = list(profile.frames[1:1 + len(profile.velocities)])
        speeds = np.array(profile.velocities)

        fig, ax = plt.subplots(figsize=(12, 4))
        ax.plot(frames, speeds, "b-", linewidth=1.5, label="velocity")
        ax.fill_between(frames, speeds, alpha=0.2, color="blue")

        for seg in segments or ():
            ax.axvspan(
                seg.start_frame, seg.end_frame,
                color=ChartGenerator.PHASE_COLORS.get(seg.label.value, "#666"),
                alpha=0.15, label=seg.label.value,
            )

        if key_moments is not None:
            for name, frame, color in (
                ("top", key_moments.top_frame, "orange"),
                ("impact", key_moments.impact_frame, "red"),
            ):
                ax.axvline(frame, color=color, linestyle="--", linewidth=2, alpha=0.7, label=name)

        peak = profile.peak_velocity_frame
        ax.plot(frames[peak], speeds[peak], "ro", markersize=6)

        ax.set_xlabel("Frame", fontsize=11)
        ax.set_ylabel("Velocity (units/ms)", fontsize=11)
        ax.set_title(title, fontsize=13, fontweight="bold")
        ax.legend(fontsize=9, loc="upper left")
        ax.grid(True, alpha=0.3)

        plt.tight_layout()
        plt.savefig(output_path, dpi=150, bbox_inches="tight")
        plt.close(fig)
        return output_path

    @staticmethod
    def trajectory_path_chart(
        trajectory: Sequence[TrajectoryPoint],
        output_path: str,
        smoothed: Optional[Sequence[TrajectoryPoint]] = None,
        title: str = "Club head path",
    ) -> str:
        """Screen-space path (y axis flipped so up is up)."""
        points = tuple(trajectory)
        if len(points) < 2:
            return ""

        fig, ax = plt.subplots(figsize=(7, 7))
        xs = [p.x for p in points]
        ys = [p.y for p in points]
        ax.plot(xs, ys, "-", color="#2196F3", linewidth=1.0, alpha=0.6, label="raw")
        ax.plot(xs[0], ys[0], "go", markersize=7, label="start")
        ax.plot(xs[-1], ys[-1], "rs", markersize=7, label="finish")

        if smoothed:
            ax.plot(
                [p.x for p in smoothed], [p.y for p in smoothed],
                "-", color="#F44336", linewidth=2.0, label="smoothed",
            )

        ax.invert_yaxis()
        ax.set_aspect("equal", adjustable="datalim")
        ax.set_xlabel("x", fontsize=11)
        ax.set_ylabel("y", fontsize=11)
        ax.set_title(title, fontsize=13, fontweight="bold")
        ax.legend(fontsize=9)
        ax.grid(True, alpha=0.3)

        plt.tight_layout()
        plt.savefig(output_path, dpi=150, bbox_inches="tight")
        plt.close(fig)
        return output_path
