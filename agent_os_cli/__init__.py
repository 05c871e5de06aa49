"""Agent OS CLI.

Installs profile-composited agent, command, workflow and standard documents
into a project, expanding the ``{{...}}`` macro language on the way.
"""

__version__ = "2.1.0"
