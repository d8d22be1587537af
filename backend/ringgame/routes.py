from flask import Blueprint, jsonify
from ringgame.services.games.points import point_table_rows

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the ring game server!'})

@main.route('/api/points')
def points_table():
    return jsonify(point_table_rows())
