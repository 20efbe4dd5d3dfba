"""Authenticated shopper as seen by the checkout, and the persisted auth state.

Authentication itself happens elsewhere; this module only holds what the
auth collaborator hands over (the user, their saved addresses and the API
token) and persists it under the ``auth`` key so it survives a restart.
"""

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, HasMany, String, ValueObject

from shopping.domain import logger, shopping
from shopping.shared.address import PostalAddress
from shopping.storage import AUTH_KEY, KeyValueStore, get_storage


@shopping.entity(part_of="Shopper")
class SavedAddress:
    address = ValueObject(PostalAddress, required=True)
    is_default = Boolean(default=False)


@shopping.aggregate
class Shopper:
    email = String(required=True, max_length=254)
    first_name = String(max_length=100)
    last_name = String(max_length=100)
    addresses = HasMany(SavedAddress)

    @invariant.post
    def at_most_one_default_address(self):
        if len([a for a in self.addresses if a.is_default]) > 1:
            raise ValidationError({"addresses": ["Only one address can be marked as default"]})

    @classmethod
    def build(cls, email, first_name=None, last_name=None, addresses=(), shopper_id=None):
        """Build a shopper; ``addresses`` holds dicts with an optional ``is_default`` key."""
        kwargs = {"email": email, "first_name": first_name, "last_name": last_name}
        if shopper_id:
            kwargs["id"] = shopper_id
        shopper = cls(**kwargs)

        with atomic_change(shopper):
            for raw in addresses:
                fields = dict(raw)
                is_default = bool(fields.pop("is_default", False))
                shopper.add_addresses(SavedAddress(address=PostalAddress(**fields), is_default=is_default))

        return shopper

    def default_address(self) -> PostalAddress | None:
        """The address flagged default, else the first saved one, else None."""
        if not self.addresses:
            return None
        chosen = next((a for a in self.addresses if a.is_default), self.addresses[0])
        return chosen.address

    def as_stored(self) -> dict:
        return {
            "id": str(self.id),
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "addresses": [
                {**saved.address.to_dict(), "is_default": saved.is_default} for saved in self.addresses
            ],
        }

    @classmethod
    def from_stored(cls, data: dict):
        return cls.build(
            email=data["email"],
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            addresses=data.get("addresses", []),
            shopper_id=data.get("id"),
        )


class AuthStore:
    """Persisted auth state: ``user``, ``token`` and ``is_authenticated``."""

    def __init__(self, storage: KeyValueStore | None = None, key: str = AUTH_KEY) -> None:
        self._storage = storage if storage is not None else get_storage()
        self._key = key
        self.user: Shopper | None = None
        self.token: str | None = None
        self.is_authenticated = False
        self._load()

    def _load(self) -> None:
        blob = self._storage.load(self._key)
        if not blob:
            return

        try:
            self.user = Shopper.from_stored(blob["user"]) if blob.get("user") else None
        except (ValidationError, KeyError, TypeError) as exc:
            logger.warning("Discarding invalid stored auth state", key=self._key, error=str(exc))
            self._storage.delete(self._key)
            return

        self.token = blob.get("token")
        self.is_authenticated = bool(blob.get("is_authenticated")) and self.user is not None

    def _save(self) -> None:
        self._storage.save(
            self._key,
            {
                "user": self.user.as_stored() if self.user else None,
                "token": self.token,
                "is_authenticated": self.is_authenticated,
            },
        )

    def sign_in(self, user: Shopper, token: str | None) -> None:
        self.user = user
        self.token = token
        self.is_authenticated = True
        self._save()
        logger.info("Shopper signed in", shopper_id=str(user.id))

    def update_user(self, user: Shopper) -> None:
        self.user = user
        self._save()

    def sign_out(self) -> None:
        shopper_id = str(self.user.id) if self.user else None
        self.user = None
        self.token = None
        self.is_authenticated = False
        self._storage.delete(self._key)
        logger.info("Shopper signed out", shopper_id=shopper_id)
