# Sample Flask Application for Testing the Scanner
# Handlers validate their input inline with request.validate(...)

from flask import Flask, request, jsonify

from validation import Rule, validate

app = Flask(__name__)

ADDRESS_RULES = "required|array"

# --- Public Routes ---
@app.route('/health')
def health():
    return jsonify({"status": "ok"})

# --- Auth Routes ---
@app.route('/api/auth/login', methods=['POST'])
def login():
    """Log in with email and password."""
    data = request.validate({
        "email": "required|email",
        "password": "required|string|min:8",
    })
    return jsonify({"token": "abc123"})

# --- User Routes ---
@app.post('/api/users')
def create_user():
    """
    Create a user.

    Registers the account and sends a welcome mail.
    """
    data = validate(request, {
        # Full display name
        "name": "required|string|max:255",
        "age": "integer|min:18|max:130",
        "role": ["required", Rule.in_(["admin", "member"])],
        # The user's address. type:Address extra notes
        "address": ADDRESS_RULES,
        "address.city": "required|string",
        "address.zip": "string|size:5",
        "tags.*": "string",
    })
    return jsonify({"id": 1}), 201

@app.post('/api/users/<int:user_id>/avatar')
def upload_avatar(user_id):
    """Upload an avatar."""
    request.validate({"avatar": "required|image|max:2048"})
    return jsonify({"uploaded": True})

@app.get('/api/users')
def list_users():
    """List users."""
    request.validate({"page": "integer|min:1", "per_page": "integer|between:1,100"})
    return jsonify([])

@app.put('/api/users/<int:user_id>/settings')
def update_settings(user_id):
    """Update settings."""
    rules = build_rules()
    request.validate(rules)
    return jsonify({"updated": True})
