"""
GatotKota — Gamification & Notification Engine
===============================================
Points, levels, inbox notifications and trending ranking for the
GatotKota civic-report platform.  Controllers call these services after
a report, comment or vote is stored; nothing here speaks HTTP.

Package layout::

    gatotkota/
    ├── config.py          # YAML → typed engine config
    ├── constants.py       # Event names, notification copy, rounding
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine, session helper, async bridge
    │   ├── models.py      # ORM models (users, levels, rules, ledger, inbox)
    │   └── seed.py        # YAML seeds (level ladder, starter rules)
    ├── engine/
    │   ├── roles.py       # Points eligibility by role
    │   ├── levels.py      # Level resolution + progress projection
    │   ├── messages.py    # Notification copy, like counts, @mentions
    │   └── trending.py    # Trending score + ranking
    ├── services/
    │   ├── rule_service.py          # Rule resolution + admin CRUD
    │   ├── point_service.py         # Award pipeline, manual adjustments, history
    │   ├── level_service.py         # Level transitions + ladder bootstrap
    │   ├── notification_service.py  # Coalescing sender + inbox + retention
    │   └── trending_service.py      # Recent-window fetch + ranking
    └── seeds/             # levels.yaml, point_rules.yaml
"""

__version__ = "0.1.0"
