"""
Ask CLI - get chat completion answers from the command line, with named conversation contexts
"""

from .chat_generator import ChatGenerator
from .interface import ChatInterface
from .store import StateStore

__version__ = "0.1.0"
