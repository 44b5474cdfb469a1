"""
Data Ingestion Layer
Government health feeds, the merged regional dataset, and the subscriber store
"""

# Keep package import lightweight. Individual modules depend on runtime
# packages (httpx, pandas, supabase) and should be imported directly.
__all__ = [
	'FeedRegistry',
	'RegionalDataset',
	'RegionalDatasetBuilder',
	'SubscriberRepo',
	'Subscriber',
]


def __getattr__(name: str):
	if name == 'FeedRegistry':
		from .feed_registry import FeedRegistry

		return FeedRegistry
	if name in ('RegionalDataset', 'RegionalDatasetBuilder'):
		from . import regional_dataset

		return getattr(regional_dataset, name)
	if name in ('SubscriberRepo', 'Subscriber'):
		from . import subscriber_repo

		return getattr(subscriber_repo, name)
	raise AttributeError(name)
