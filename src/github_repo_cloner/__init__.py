"""
GitHub Repository Cloner

Fetches a user's GitHub repositories, clones the selected ones into a Unity
project's asset tree and scaffolds assembly definitions, package manifests
and template files for each clone.
"""

__version__ = "0.1.0"
__author__ = "Unity Essentials"
__description__ = "Clone GitHub repositories into a Unity project and scaffold them as packages"
