"""LocalsZA storefront client-state layer: cart, favorites, and route list stores."""

from localsza.errors import (  # noqa: F401
    ErrorType,
    LocalsZAError,
    MissingProviderError,
    NoRouteStopsError,
    SharedCartDecodeError,
)
from localsza.scope import (  # noqa: F401
    StoreScope,
    current_scope,
    use_cart,
    use_favorites,
    use_route_list,
)
from localsza.services import (  # noqa: F401
    CartStore,
    FavoritesStore,
    PersistedCollection,
    RouteListStore,
)
from localsza.storage import MemoryStorage, RedisStorage, get_storage  # noqa: F401

__version__ = "0.1.0"
