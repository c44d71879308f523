"""FeedSync - RSS/Atom 订阅源同步服务."""

__version__ = "0.1.0"
