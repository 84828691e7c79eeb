"""WordShelf Backend: word routes (/api/words)."""

from wordshelf.routes.records import build_record_router
from wordshelf.schemas.kinds import WORD

router = build_record_router(WORD)
