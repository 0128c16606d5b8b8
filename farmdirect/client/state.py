"""Client application state."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class AppState:
    """Everything the client shows, owned by the controller."""
    current_user: Optional[Dict[str, Any]] = None
    language: str = "en"
    dark_mode: bool = False
    products: List[Dict[str, Any]] = field(default_factory=list)
    market_prices: List[Dict[str, Any]] = field(default_factory=list)
    orders: List[Dict[str, Any]] = field(default_factory=list)
    category_filter: str = "all"
    search: str = ""
    loading: bool = False

    @property
    def is_logged_in(self) -> bool:
        return self.current_user is not None

    @property
    def is_farmer(self) -> bool:
        return bool(self.current_user) and self.current_user.get("type") == "farmer"
