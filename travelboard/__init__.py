"""
Travelboard — Collaborative Travel Boards
==========================================
Users create boards, pin places and media into them, arrange pins into
ordered layouts (masonry, timeline-by-day) and interact socially (like,
save, follow, comment, react).  This package is the collaboration and
relation-consistency core behind that experience.

Package layout::

    travelboard/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Caps, allow-lists, validation patterns
    ├── errors.py          # Error taxonomy shared by services and API
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # All ORM models
    ├── engine/
    │   └── permissions.py # Role → capability resolution (pure)
    ├── services/
    │   ├── identity_service.py   # Identity gate + lazy user provisioning
    │   ├── permission_service.py # Board access checks against the DB
    │   ├── ordering_service.py   # Ordered pins within boards / days
    │   ├── toggle_service.py     # Likes, saves, follows, reactions, reports
    │   ├── activity_service.py   # Append-only board activity log
    │   ├── search_service.py     # Multi-entity search aggregator
    │   ├── board_service.py      # Boards, board pins, ownership
    │   ├── member_service.py     # Board membership
    │   ├── timeline_service.py   # Timeline days
    │   ├── comment_service.py    # Board discussion
    │   ├── pin_service.py        # Pins and tags
    │   └── storage_service.py    # Object storage for uploaded media
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Engine, session and identity dependencies
        └── routes/        # REST endpoints
"""

__version__ = "0.1.0"
