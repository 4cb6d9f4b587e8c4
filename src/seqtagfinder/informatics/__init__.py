from .batch_channel import BatchChannel, ChannelClosedError
from .bam_io import BamIOError, RecordSink, RecordSource, open_record_sink, open_record_source
from .match_table import EmptyWhitelistError, FuzzyMatchTable, MatchClass, MatchKind
from .metrics import RunMetrics, write_metrics
from .position_inference import FrequencyScanner, select_target_position
from .sequence import InvalidSequenceError, Sequence
from .bam_tagging import process_bam, tag_bams
from .tagger import TagAttachError, Tagger
from .whitelist import load_match_table


__all__ = [
    "BatchChannel",
    "ChannelClosedError",
    "BamIOError",
    "RecordSink",
    "RecordSource",
    "open_record_sink",
    "open_record_source",
    "EmptyWhitelistError",
    "FuzzyMatchTable",
    "MatchClass",
    "MatchKind",
    "RunMetrics",
    "write_metrics",
    "FrequencyScanner",
    "select_target_position",
    "InvalidSequenceError",
    "Sequence",
    "process_bam",
    "tag_bams",
    "TagAttachError",
    "Tagger",
    "load_match_table",
]
