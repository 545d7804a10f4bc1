import asyncio

from storefront.schemas.principal import Principal
from storefront.services.identity import AuthStateStream


async def _collect(stream, n):
    out = []
    async for identity in stream:
        out.append(identity.uid if identity else None)
        if len(out) == n:
            break
    return out


async def test_subscriber_gets_current_identity_first(alice):
    auth = AuthStateStream(alice)
    stream = auth.subscribe()
    assert (await stream.__anext__()).uid == "alice"
    await stream.aclose()
    assert auth.subscriber_count == 0


async def test_changes_are_fanned_out_in_order(alice, bob):
    auth = AuthStateStream()
    first = asyncio.ensure_future(_collect(auth.subscribe(), 4))
    second = asyncio.ensure_future(_collect(auth.subscribe(), 4))
    await asyncio.sleep(0)

    auth.sign_in(alice)
    auth.sign_out()
    auth.sign_in(bob)

    assert await first == [None, "alice", None, "bob"]
    assert await second == [None, "alice", None, "bob"]
    assert auth.current == Principal(uid="bob", role="user", email="bob@example.com")
