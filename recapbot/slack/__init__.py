"""
Slack integration module for Recap Bot.
"""

from .base import MessagingGateway
from .gateway import SlackBotGateway, SlackUserGateway, create_client

__all__ = [
    'MessagingGateway',
    'SlackUserGateway',
    'SlackBotGateway',
    'create_client',
]
