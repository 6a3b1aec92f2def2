"""
The Supervisor package.
Manages the lifecycle of one wiki run.

This package contains the central WikiManager class and its helper modules,
which together handle starting, supervising and stopping the builder, the
change watcher, the recompiler and the web server.
"""
from .supervisor import WikiManager

__all__ = ['WikiManager']
