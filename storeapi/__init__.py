"""Store backend: category/coupon CRUD plus registration, login and password reset."""
