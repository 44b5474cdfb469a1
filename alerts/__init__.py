"""
Alert Delivery Layer
Twilio WhatsApp delivery and the scheduled subscriber broadcast.
"""

# Keep package import lightweight: messaging pulls in the Twilio SDK, so
# modules are resolved on first attribute access.
__all__ = [
	'AlertBroadcaster',
	'BroadcastReport',
	'TwilioGateway',
	'DeliveryError',
]


def __getattr__(name: str):
	if name in ('AlertBroadcaster', 'BroadcastReport'):
		from . import broadcaster

		return getattr(broadcaster, name)
	if name in ('TwilioGateway', 'DeliveryError'):
		from . import messaging

		return getattr(messaging, name)
	raise AttributeError(name)
