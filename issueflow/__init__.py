"""issueflow: issue workflow rule engine.

Parses a declarative workflow policy (labels, board layout, automation rules)
and evaluates it against snapshots of tracker state: label inference, SLA and
escalation checks, and label/board sync planning.
"""

__version__ = "0.1.0"
