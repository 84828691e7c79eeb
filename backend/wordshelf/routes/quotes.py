"""WordShelf Backend: quote routes (/api/quotes)."""

from wordshelf.routes.records import build_record_router
from wordshelf.schemas.kinds import QUOTE

router = build_record_router(QUOTE)
