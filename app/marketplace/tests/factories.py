"""
Factory Boy factories for marketplace models.

Usage:
    from marketplace.tests.factories import ProductFactory, ReservationFactory

    product = ProductFactory(quantity=3)
    reservation = ReservationFactory(product=product, quantity=2)
    completed = ReservationFactory(
        status=ReservationStatus.COMPLETED,
        review_token="tok",
    )
"""

from decimal import Decimal

import factory

from authentication.tests.factories import SellerFactory, UserFactory
from marketplace.models import Product, Reservation, ReservationStatus, Review


class ProductFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Product

    seller = factory.SubFactory(SellerFactory)
    name = factory.Sequence(lambda n: f"Produto {n}")
    description = factory.Faker("sentence")
    price = Decimal("49.90")
    quantity = 10
    images = factory.LazyFunction(lambda: ["https://cdn.example.com/p/cover.jpg"])


class ReservationFactory(factory.django.DjangoModelFactory):
    """
    Reservation in PENDING by default.

    Creating one does not touch product stock; tests that care about
    inventory go through ReservationService.
    """

    class Meta:
        model = Reservation

    buyer = factory.SubFactory(UserFactory)
    product = factory.SubFactory(ProductFactory)
    quantity = 1
    status = ReservationStatus.PENDING


class ReviewFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Review

    reservation = factory.SubFactory(
        ReservationFactory,
        status=ReservationStatus.COMPLETED,
    )
    product = factory.SelfAttribute("reservation.product")
    seller = factory.SelfAttribute("reservation.product.seller")
    buyer = factory.SelfAttribute("reservation.buyer")
    rating = 5
    comment = "Ótimo vendedor"
