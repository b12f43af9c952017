"""
Seed the product catalogue with random items.

Usage:
  python -m app.scripts.seed_products
  python -m app.scripts.seed_products --count 25

Products are created through ProductService, so every seeded price has
already been through the stock-driven adjustment.
"""
import argparse
import random

from app.database import SessionLocal, Base, engine
from app.schemas.product import ProductCreate
from app.services.product_service import ProductService

PRODUCTS = [
    ("Smartphone X500", "A high-performance smartphone with a stunning display."),
    ("Laptop Pro 15", "A lightweight laptop with an advanced processor for multitasking."),
    ("Wireless Headphones S5", "Noise-cancelling wireless headphones for travel or work."),
    ("Gaming Laptop Ultra", "Gaming laptop with a high refresh rate display."),
    ("Smartwatch Max", "A smartwatch that tracks your health and fitness."),
    ("Bluetooth Speaker ZX", "Portable speaker with rich bass."),
    ("4K UHD TV", "True-to-life visuals for movies and sports."),
    ("Smart Home Hub", "Control your smart devices from one place."),
    ("Fitness Tracker Plus", "Monitor heart rate, steps and sleep."),
    ("Gaming Console 2023", "Next-gen console with enhanced graphics."),
    ("LED Monitor 24\"", "Vibrant colors for gaming and productivity."),
    ("Portable Power Bank", "Keep your devices charged on the go."),
    ("Gaming Keyboard RGB", "Responsive keys with customizable lighting."),
    ("Ultra HD Projector", "Stunning picture quality for home theaters."),
    ("Car Dash Camera", "Records high-definition footage while you drive."),
    ("Smart Lock", "Control door access from your smartphone."),
    ("Wireless Mouse Pro", "Ergonomic mouse designed for precision."),
    ("Cordless Vacuum Cleaner", "Powerful suction with multiple attachments."),
]


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed random products")
    parser.add_argument("--count", type=int, default=100, help="Number of products to create")
    args = parser.parse_args(argv)

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        service = ProductService(db)
        for _ in range(args.count):
            name, description = random.choice(PRODUCTS)
            service.create(ProductCreate(
                name=name,
                description=description,
                price=round(random.uniform(50, 2000), 2),
                stock_quantity=random.randint(1, 100),
            ))
        print(f"Seeded {args.count} products.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
