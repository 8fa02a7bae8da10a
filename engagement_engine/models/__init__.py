from .channel import Channel
from .channel_snapshot import ChannelSnapshot
from .post_metric import PostMetric
from .recommendation import Recommendation

__all__ = [
    "Channel",
    "ChannelSnapshot",
    "PostMetric",
    "Recommendation",
]
