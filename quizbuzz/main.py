from flask import Blueprint, request, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
from quizbuzz import db
from quizbuzz.models import User
from quizbuzz.services.game.storage import load_host_batches
import time

main = Blueprint('main', __name__)

# Failed host logins per client IP: ip -> {'attempts', 'last_attempt', 'locked_until'}
_login_attempts: dict[str, dict] = {}


def _client_ip() -> str:
    forwarded = request.headers.get('X-Forwarded-For', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.remote_addr or 'unknown'


def _locked_for(ip: str) -> int:
    """Seconds left on a lockout for ``ip``, 0 when logins are allowed."""
    record = _login_attempts.get(ip)
    if not record:
        return 0
    now = time.time()
    if record.get('locked_until') and now < record['locked_until']:
        return int(record['locked_until'] - now) + 1
    if now - record['last_attempt'] > current_app.config.get('LOGIN_ATTEMPT_WINDOW_SEC', 900):
        _login_attempts.pop(ip, None)
    return 0


def _record_failure(ip: str) -> int:
    cfg = current_app.config
    now = time.time()
    record = _login_attempts.get(ip) or {'attempts': 0, 'last_attempt': now}
    if now - record['last_attempt'] > cfg.get('LOGIN_ATTEMPT_WINDOW_SEC', 900):
        record['attempts'] = 0
    record['attempts'] += 1
    record['last_attempt'] = now
    max_attempts = cfg.get('MAX_LOGIN_ATTEMPTS', 5)
    if record['attempts'] >= max_attempts:
        record['locked_until'] = now + cfg.get('LOGIN_LOCKOUT_SEC', 300)
        current_app.logger.warning(f"[auth-lock] ip={ip} locked after {record['attempts']} failed attempts")
    _login_attempts[ip] = record
    return max(0, max_attempts - record['attempts'])


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the quizbuzz game server!'})

@main.route('/api/auth/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''
    if not username or not password:
        return jsonify({'error': 'Missing username or password'}), 400

    if User.query.filter_by(username=username).first():
        return jsonify({'error': 'Username already exists'}), 400

    user = User(username=username)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    return jsonify({'message': 'User created successfully'}), 201

@main.route('/api/auth/login', methods=['POST'])
def login():
    ip = _client_ip()
    retry_after = _locked_for(ip)
    if retry_after:
        return jsonify({'error': f'Too many attempts. Try again in {retry_after} seconds.',
                        'retry_after': retry_after}), 429

    data = request.get_json(silent=True) or {}
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''
    if not username or not password:
        return jsonify({'error': 'Missing username or password'}), 400

    user = User.query.filter_by(username=username).first()
    if user and user.check_password(password):
        _login_attempts.pop(ip, None)
        login_user(user, remember=True)
        # The host's saved batches become the live question pool
        coordinator = current_app.extensions['quizbuzz']
        coordinator.attach_host(user.username, load_host_batches(current_app, user.username))
        current_app.logger.info(f"[auth] login host={user.username} ip={ip}")
        return jsonify({'message': 'Logged in successfully.', 'user': user.to_dict()})

    remaining = _record_failure(ip)
    current_app.logger.info(f"[auth] failed login ip={ip} remaining={remaining}")
    return jsonify({'error': 'Invalid username or password', 'remaining_attempts': remaining}), 401

@main.route('/api/auth/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'message': 'Logged out successfully.'})

@main.route('/api/auth/status')
def auth_status():
    if current_user.is_authenticated:
        return jsonify({'authenticated': True, 'user': current_user.to_dict()})
    return jsonify({'authenticated': False})
