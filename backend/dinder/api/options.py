from flask import Blueprint, jsonify

from dinder.catalog import get_catalog

options = Blueprint('options', __name__)


@options.route('', methods=['GET'])
def list_options():
    return jsonify({'options': get_catalog().list_options()})
