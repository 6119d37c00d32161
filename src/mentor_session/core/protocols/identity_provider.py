"""Identity provider protocol contract."""

from typing import Awaitable, Callable, Optional, Protocol, Union, runtime_checkable

from ..events import Subscription
from ..value_objects import AuthUser

AuthStateListener = Callable[[Optional[AuthUser]], Union[None, Awaitable[None]]]


@runtime_checkable
class IdentityProvider(Protocol):
    """External authentication collaborator.
    
    The session subsystem never handles credentials; it only observes who is
    signed in and asks the provider to sign out.
    """
    
    def current_user(self) -> Optional[AuthUser]:
        """Return the signed-in user, or None."""
        ...
    
    def on_auth_state_changed(self, listener: AuthStateListener) -> Subscription:
        """Subscribe to sign-in / sign-out transitions."""
        ...
    
    async def sign_out(self) -> None:
        """Terminate the local authentication credential."""
        ...
