"""Page controllers for the login, dashboard and reports screens.

Controllers hold view state only (rows, cards, messages, toasts and where to
redirect); drawing it is left to whatever front end sits on top.
"""
import json
import re
from dataclasses import dataclass

from models import OUT_OF_STOCK, LOW_STOCK, stock_status
from session_client import ApiClient, ApiError, Session, SessionStore


LOADING = "loading"
RENDERED = "rendered"
ERROR = "error"

LOGIN_PAGE = "login"
DASHBOARD_PAGE = "dashboard"

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

STATUS_LABELS = {
    OUT_OF_STOCK: "Out of stock",
    LOW_STOCK: "Low stock",
}


@dataclass
class Toast:
    message: str
    kind: str = "info"


def normalize_product(p):
    min_quantity = p.get("minQuantity")
    if min_quantity is None:
        min_quantity = p.get("min_quantity")
    return {
        "id": p.get("id"),
        "name": p.get("name") or "",
        "sku": p.get("sku") or "",
        "quantity": int(p.get("quantity") or 0),
        "minQuantity": int(min_quantity or 0),
        "category": p.get("category") or "",
        "createdAt": p.get("createdAt") or p.get("created_at"),
        "lastUpdated": p.get("lastUpdated") or p.get("updated_at"),
    }


def status_label(product):
    return STATUS_LABELS.get(stock_status(product["quantity"], product["minQuantity"]), "OK")


def is_low_stock(product):
    return product["quantity"] <= product["minQuantity"]


class PageController:
    def __init__(self, api: ApiClient, store: SessionStore):
        self.api = api
        self.store = store
        self.toasts = []
        self.redirect = None

    def show_toast(self, message, kind="info"):
        self.toasts.append(Toast(message, kind))

    def current_session(self):
        session = self.store.load()
        if session is None or not session.is_valid():
            return None
        return session


# ------------------------------------------------------------
# Login / Register
# ------------------------------------------------------------

class LoginController(PageController):
    def __init__(self, api, store):
        super().__init__(api, store)
        self.active_tab = LOGIN_PAGE
        self.field_errors = {}
        self.error_message = ""
        self.success_message = ""
        self.busy = False
        self.check_existing_session()

    def check_existing_session(self):
        if self.current_session() is not None:
            self.redirect = DASHBOARD_PAGE

    def switch_tab(self, tab):
        if tab not in (LOGIN_PAGE, "register"):
            raise ValueError(f"unknown tab {tab!r}")
        self.active_tab = tab
        self._reset_messages()

    def _reset_messages(self):
        self.field_errors = {}
        self.error_message = ""
        self.success_message = ""

    @staticmethod
    def validate_email(email):
        return bool(EMAIL_RE.match(email))

    def _check_email(self, field, email):
        if not email:
            self.field_errors[field] = "Email is required"
        elif not self.validate_email(email):
            self.field_errors[field] = "Invalid email"

    def _start_session(self, data):
        session = Session.from_api(data)
        self.store.save(session)
        self.api.session = session
        return session

    def login(self, email, password):
        self._reset_messages()
        email, password = email.strip(), password.strip()

        self._check_email("login-email", email)
        if not password:
            self.field_errors["login-password"] = "Password is required"
        if self.field_errors:
            return False

        self.busy = True
        try:
            self._start_session(self.api.login(email, password))
        except (ApiError, ValueError) as e:
            self.error_message = str(e) or "Login failed."
            self.show_toast(self.error_message, "error")
            return False
        finally:
            self.busy = False

        self.show_toast("Login successful!", "success")
        self.redirect = DASHBOARD_PAGE
        return True

    def register(self, name, email, password):
        self._reset_messages()
        name, email, password = name.strip(), email.strip(), password.strip()

        if not name:
            self.field_errors["register-name"] = "Name is required"
        elif len(name) < 3:
            self.field_errors["register-name"] = "Enter at least 3 characters"
        self._check_email("register-email", email)
        if not password:
            self.field_errors["register-password"] = "Password is required"
        elif len(password) < 6:
            self.field_errors["register-password"] = "Password must be at least 6 characters"
        if self.field_errors:
            return False

        self.busy = True
        try:
            self._start_session(self.api.register(name, email, password))
        except (ApiError, ValueError) as e:
            self.error_message = str(e) or "Registration failed."
            self.show_toast(self.error_message, "error")
            return False
        finally:
            self.busy = False

        self.success_message = "Account created! You will be redirected."
        self.show_toast("Registration successful!", "success")
        self.redirect = DASHBOARD_PAGE
        return True


# ------------------------------------------------------------
# Pages listing products
# ------------------------------------------------------------

class ProductPage(PageController):
    load_error = "Failed to load products."

    def __init__(self, api, store):
        super().__init__(api, store)
        self.products = []
        self.state = LOADING
        self.message = ""
        self.session = self.current_session()
        if self.session is None:
            self.redirect = LOGIN_PAGE
        else:
            self.api.session = self.session

    @property
    def welcome_message(self):
        return f"Welcome, {self.session.name}!" if self.session else ""

    def load(self):
        if self.session is None:
            return
        self.state = LOADING
        self.message = ""
        try:
            data = self.api.list_products()
        except ApiError as e:
            self.products = []
            self.state = ERROR
            self.message = e.message or self.load_error
            self.show_toast(self.message, "error")
            if e.status_code == 401:
                # token expired or rejected, the stored session is useless now
                self.logout()
            return
        self.products = [normalize_product(p) for p in data]
        self.state = RENDERED

    def cards(self):
        return {
            "total_products": len(self.products),
            "total_items": sum(p["quantity"] for p in self.products),
            "low_stock": sum(1 for p in self.products if is_low_stock(p)),
        }

    def logout(self):
        self.store.clear()
        self.api.session = None
        self.session = None
        self.redirect = LOGIN_PAGE


class DashboardController(ProductPage):
    def __init__(self, api, store):
        super().__init__(api, store)
        self.editing_id = None
        self.form = self._empty_form()
        self.form_message = ""
        self.form_message_kind = ""
        self.search = ""

    @staticmethod
    def _empty_form():
        return {"name": "", "sku": "", "quantity": "", "minQuantity": ""}

    def rows(self, search=None):
        if search is not None:
            self.search = search
        term = self.search.strip().lower()
        products = self.products
        if term:
            products = [p for p in products if term in p["name"].lower() or term in p["sku"].lower()]
        if self.state == RENDERED:
            self.message = "" if products else "No products found."
        return [dict(p, status=status_label(p)) for p in products]

    def start_edit(self, product):
        self.editing_id = product["id"]
        self.form = {
            "name": product["name"],
            "sku": product["sku"],
            "quantity": product["quantity"],
            "minQuantity": product["minQuantity"],
        }
        self.form_message = "Editing product. Save to confirm the changes."
        self.form_message_kind = "info"

    def cancel_edit(self):
        self.editing_id = None
        self.form = self._empty_form()
        self.form_message = ""
        self.form_message_kind = ""

    def validate_product(self, product, editing_id=None):
        """Advisory checks run before anything is sent; the API enforces its own."""
        errors = []

        if not product["name"]:
            errors.append("Product name is required")
        elif len(product["name"]) < 3:
            errors.append("Product name must have at least 3 characters")

        if not product["sku"]:
            errors.append("SKU is required")

        if product["quantity"] is None:
            errors.append("Quantity must be a whole number")
        elif product["quantity"] < 0:
            errors.append("Quantity cannot be negative")

        if product["minQuantity"] is None:
            errors.append("Minimum stock must be a whole number")
        elif product["minQuantity"] < 0:
            errors.append("Minimum stock cannot be negative")

        duplicated = any(
            p["sku"] == product["sku"] for p in self.products if not (editing_id and p["id"] == editing_id)
        )
        if duplicated:
            errors.append("A product with this SKU already exists")

        return errors

    @staticmethod
    def _to_int(value):
        if value is None or value == "":
            return 0
        try:
            return int(str(value).strip())
        except ValueError:
            return None

    def submit(self, form=None):
        if form is not None:
            self.form = dict(self.form, **form)
        self.form_message = ""
        self.form_message_kind = ""

        product = {
            "name": str(self.form.get("name", "")).strip(),
            "sku": str(self.form.get("sku", "")).strip(),
            "quantity": self._to_int(self.form.get("quantity")),
            "minQuantity": self._to_int(self.form.get("minQuantity")),
        }

        errors = self.validate_product(product, self.editing_id)
        if errors:
            self.form_message = ". ".join(errors) + "."
            self.form_message_kind = "error"
            return False

        try:
            if self.editing_id:
                self.api.update_product(self.editing_id, product)
                self.show_toast("Product updated successfully!", "success")
            else:
                self.api.create_product(product)
                self.show_toast("Product created successfully!", "success")
        except ApiError as e:
            self.form_message = e.message or "Failed to save product."
            self.form_message_kind = "error"
            self.show_toast(self.form_message, "error")
            return False

        self.cancel_edit()
        self.load()
        return True

    def delete(self, product_id, confirm=None):
        if confirm is not None and not confirm("Are you sure you want to remove this product?"):
            return False
        try:
            self.api.delete_product(product_id)
        except ApiError as e:
            self.show_toast(e.message or "Failed to remove product", "error")
            return False
        self.show_toast("Product removed successfully", "success")
        self.load()
        return True

    def export(self, path="estoquehub_export.json"):
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(self.products, fh, indent=2, default=str)
        self.show_toast("Data exported successfully", "success")
        return path


class ReportsController(ProductPage):
    def low_stock_rows(self):
        rows = [dict(p, status=status_label(p)) for p in self.products if is_low_stock(p)]
        if self.state == RENDERED:
            self.message = "" if rows else "No products with low stock at the moment."
        return rows
