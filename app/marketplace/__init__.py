"""
Marketplace application.

Products listed by sellers, buyer reservations that hold inventory, and
post-sale reviews redeemed through single-use tokens.

Key components:
    - Product: seller listing with stock and paid highlight windows
    - Reservation: buyer hold on stock (PENDING -> CONFIRMED -> COMPLETED)
    - Review: one per completed reservation
    - ReservationService / ReviewService: transactional business rules

Usage:
    from marketplace.services import ReservationService
    reservation = ReservationService.create_reservation(buyer, product_id, 2)
"""
