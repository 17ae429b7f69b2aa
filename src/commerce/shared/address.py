"""Address and customer contact value objects shared by Checkout and Order."""

from protean.fields import String

from commerce.domain import commerce


@commerce.value_object
class Address:
    """A postal address captured for shipping or billing.

    Replaced wholesale on update. Checkouts may carry a partial address while
    the customer is still typing; completeness is checked before an order is
    created.
    """

    street1 = String(max_length=255)
    street2 = String(max_length=255)
    city = String(max_length=100)
    state = String(max_length=100)
    postal_code = String(max_length=20)
    country = String(max_length=100)

    def has_any(self):
        return any([self.street1, self.city, self.postal_code, self.country])

    def is_deliverable(self):
        return bool(self.street1) and bool(self.country)


@commerce.value_object
class CustomerDetails:
    """Contact details of the person placing the order."""

    email = String(max_length=254)
    phone = String(max_length=50)
    full_name = String(max_length=255)

    def has_any(self):
        return any([self.email, self.phone, self.full_name])
