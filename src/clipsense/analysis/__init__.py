from .edits import (
    AudioEditRegion,
    TrimRegion,
    apply_rough_cut_suggestions_to_trim_regions,
    get_audio_edit_gain_multiplier_at_time,
    normalize_audio_edit_regions,
    rough_cut_suggestions_to_audio_edit_regions,
)
from .models import (
    RoughCutOptions,
    RoughCutSuggestion,
    SubtitleCue,
    SubtitleGenerationOptions,
    VideoAnalysisResult,
)
from .pipeline import BuildVideoAnalysisInput, build_video_analysis_result
from .queue import AnalysisJobQueue, AnalysisJobStatus, JobOutcome, JobState
from .rough_cut import generate_rough_cut_suggestions, normalize_rough_cut_suggestions
from .service import StartVideoAnalysisInput, VideoAnalysisService, read_analysis_sidecar
from .subtitles import (
    build_subtitle_cues_from_words,
    build_subtitle_lines,
    find_subtitle_cue_at_time,
    normalize_subtitle_cues,
)

__all__ = [
    "AudioEditRegion",
    "TrimRegion",
    "apply_rough_cut_suggestions_to_trim_regions",
    "get_audio_edit_gain_multiplier_at_time",
    "normalize_audio_edit_regions",
    "rough_cut_suggestions_to_audio_edit_regions",
    "RoughCutOptions",
    "RoughCutSuggestion",
    "SubtitleCue",
    "SubtitleGenerationOptions",
    "VideoAnalysisResult",
    "BuildVideoAnalysisInput",
    "build_video_analysis_result",
    "AnalysisJobQueue",
    "AnalysisJobStatus",
    "JobOutcome",
    "JobState",
    "generate_rough_cut_suggestions",
    "normalize_rough_cut_suggestions",
    "StartVideoAnalysisInput",
    "VideoAnalysisService",
    "read_analysis_sidecar",
    "build_subtitle_cues_from_words",
    "build_subtitle_lines",
    "find_subtitle_cue_at_time",
    "normalize_subtitle_cues",
]
