from flask import Blueprint, jsonify

from dinder.store import redis_store

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Dinder session server!'})


@main.route('/health')
def health():
    healthy = redis_store.ping()
    return jsonify({
        'status': 'healthy' if healthy else 'unhealthy',
        'redis': healthy,
    }), 200 if healthy else 503
