from flask import Blueprint, jsonify, request, current_app
from ringgame import db, socketio
from ringgame.models import Game, _utcnow
from ringgame.services.games import GameConfig, GameError, GameNotFound, GameRegistry, GameState
from ringgame.services.games.deck import build_deck
from ringgame.services.games.errors import AlreadyPlacedThisRound, InvalidPhase, RoundInProgress, SlotOccupied
import secrets


games = Blueprint('games', __name__)

_CONFLICT_ERRORS = (RoundInProgress, SlotOccupied, AlreadyPlacedThisRound)


def _registry() -> GameRegistry:
    return current_app.extensions['game_registry']


def _error(exc: GameError):
    status = 409 if isinstance(exc, _CONFLICT_ERRORS) else 400
    return jsonify(exc.to_dict()), status


def _not_found(game_code: str):
    return jsonify({'error': f'Game {game_code} not found', 'code': 'GameNotFound'}), 404


def _broadcast(game_code: str) -> None:
    socketio.emit('state_update', {'game_code': game_code}, to=f"game:{game_code}", namespace='/ws')


def _persist(game_code: str, snapshot: dict) -> None:
    row = Game.query.filter_by(game_code=game_code).first()
    if row is None:
        return
    row.store(snapshot)
    db.session.add(row)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.error(f"[persist] game={game_code} round={snapshot.get('round')} snapshot not saved")
        raise


def _apply(game_code: str, command):
    """Run ``command(state)`` under the game's lock, then save and broadcast.

    Returns (result, snapshot). Engine errors propagate untouched; nothing
    is stored for a rejected command. If saving fails the change stays live
    and published, watchers are still told, and the error propagates.
    """
    applied = False
    try:
        with _registry().mutate(game_code) as state:
            result = command(state)
            applied = True
            snapshot = state.to_dict()
            _persist(game_code, snapshot)
    finally:
        if applied:
            _broadcast(game_code)
    return result, snapshot


def _debounced(action: str, game_code: str):
    """Returns an error response if the host repeats ``action`` too quickly."""
    debounce_ms = int(current_app.config.get('HOST_DEBOUNCE_MS') or 0)
    if debounce_ms <= 0:
        return None
    if _registry().throttle(game_code, action, debounce_ms):
        current_app.logger.info(f"[debounce] game={game_code} action={action}")
        return jsonify({'error': 'Too many host commands, try again shortly', 'code': 'Debounced'}), 429
    return None


def _check_host(game_code: str, data: dict):
    """Returns an error response if the caller is not the game's host."""
    row = Game.query.filter_by(game_code=game_code).first()
    if row is None:
        return _not_found(game_code)
    token = data.get('host_token') or ''
    if not secrets.compare_digest(str(token), row.host_token):
        return jsonify({'error': 'Only the host may do that', 'code': 'NotHost'}), 403
    return None


@games.route('/create', methods=['POST'])
def create_game():
    data = request.get_json(silent=True) or {}
    title = (data.get('title') or '').strip()
    team_count = data.get('team_count')
    if not title:
        return jsonify({'error': 'A title is required', 'code': 'InvalidConfig'}), 400
    try:
        team_count = int(team_count)
    except (TypeError, ValueError):
        return jsonify({'error': 'team_count must be a number', 'code': 'InvalidConfig'}), 400

    cfg = current_app.config
    row = Game(title=title, snapshot='{}')
    try:
        state = GameState.new(
            row.game_code,
            title,
            team_count,
            config=GameConfig.from_app_config(cfg),
            max_teams=int(cfg.get('MAX_TEAMS', 30)),
        )
    except GameError as exc:
        return _error(exc)

    snapshot = _registry().add(state)
    row.store(snapshot)
    db.session.add(row)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        _registry().discard(row.game_code)
        raise
    current_app.logger.info(f"[game-create] game={row.game_code} teams={team_count}")
    return jsonify({
        'game_code': row.game_code,
        'host_token': row.host_token,
        'state': snapshot,
    }), 201


@games.route('/join', methods=['POST'])
def join_game():
    data = request.get_json(silent=True) or {}
    game_code = (data.get('game_code') or '').upper()
    name = (data.get('name') or '').strip()
    team_number = data.get('team_number')
    if not all([game_code, name, team_number]):
        return jsonify({'error': 'Game code, team number and player name are required'}), 400
    try:
        team_number = int(team_number)
    except (TypeError, ValueError):
        return jsonify({'error': 'team_number must be a number', 'code': 'UnknownTeam'}), 400

    try:
        member, snapshot = _apply(game_code, lambda s: s.add_member(team_number, name))
    except GameNotFound:
        return _not_found(game_code)
    except GameError as exc:
        return _error(exc)
    return jsonify({
        'member_id': member.id,
        'team_number': team_number,
        'state': snapshot,
    }), 201


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    try:
        return jsonify(_registry().snapshot(game_code.upper()))
    except GameNotFound:
        return _not_found(game_code.upper())


@games.route('/<string:game_code>/start', methods=['POST'])
def start_game(game_code):
    game_code = game_code.upper()
    data = request.get_json(silent=True) or {}
    denied = _check_host(game_code, data)
    if denied:
        return denied
    try:
        busy = _debounced('start', game_code)
        if busy:
            return busy
        _, snapshot = _apply(game_code, lambda s: s.start())
    except GameNotFound:
        return _not_found(game_code)
    except GameError as exc:
        return _error(exc)
    current_app.logger.info(f"[start] game={game_code}")
    return jsonify(snapshot)


@games.route('/<string:game_code>/draw', methods=['POST'])
def draw_card(game_code):
    game_code = game_code.upper()
    data = request.get_json(silent=True) or {}
    denied = _check_host(game_code, data)
    if denied:
        return denied

    index = data.get('index')
    if index is None and not data.get('random'):
        return jsonify({'error': 'Provide a card index or random: true', 'code': 'InvalidDraw'}), 400
    if data.get('random'):
        index = None

    try:
        busy = _debounced('draw', game_code)
        if busy:
            return busy
        card, snapshot = _apply(game_code, lambda s: s.draw_card(index))
    except GameNotFound:
        return _not_found(game_code)
    except GameError as exc:
        return _error(exc)
    current_app.logger.info(f"[draw] game={game_code} round={snapshot['round']} card={card.index}")
    return jsonify(snapshot)


@games.route('/<string:game_code>/place', methods=['POST'])
def place(game_code):
    game_code = game_code.upper()
    data = request.get_json(silent=True) or {}
    team_number = data.get('team_number')
    member_id = data.get('member_id')
    slot = data.get('slot')
    if team_number is None or slot is None or not member_id:
        return jsonify({'error': 'team_number, member_id and slot are required'}), 400

    try:
        snapshot = _registry().snapshot(game_code)
    except GameNotFound:
        return _not_found(game_code)
    # Rosters are frozen once the game leaves the lobby, so the snapshot is current enough here
    team = next((t for t in snapshot['teams'] if t['team_number'] == team_number), None)
    member = next((m for m in (team or {}).get('members', []) if m['id'] == member_id), None)
    if team is not None and member is None:
        return jsonify({'error': 'You are not a member of this team', 'code': 'NotTeamMember'}), 403

    placed_by = member['name'] if member else None
    try:
        _, snapshot = _apply(game_code, lambda s: s.place_for_team(team_number, slot, placed_by))
    except GameNotFound:
        return _not_found(game_code)
    except GameError as exc:
        return _error(exc)
    if snapshot['phase'] == 'ended':
        current_app.logger.info(f"[finish] game={game_code} round={snapshot['round']}")
    return jsonify(snapshot)


@games.route('/<string:game_code>/ranking', methods=['GET'])
def get_ranking(game_code):
    game_code = game_code.upper()
    try:
        snapshot = _registry().snapshot(game_code)
    except GameNotFound:
        return _not_found(game_code)
    if snapshot['final_ranking'] is None:
        return _error(InvalidPhase('The final ranking is available once the game has ended'))
    return jsonify(snapshot['final_ranking'])


@games.route('/<string:game_code>/deck', methods=['GET'])
def get_deck(game_code):
    game_code = game_code.upper()
    try:
        snapshot = _registry().snapshot(game_code)
    except GameNotFound:
        return _not_found(game_code)
    multiplicity = {int(v): c for v, c in snapshot['config']['deck_multiplicity'].items()}
    drawn = set(snapshot['drawn_indices'])
    return jsonify([
        dict(card.to_dict(), drawn=card.index in drawn)
        for card in build_deck(multiplicity)
    ])


@games.route('/active', methods=['GET'])
def get_active_games():
    rows = Game.query.filter(Game.status != 'ended').order_by(Game.created_at.desc()).all()
    return jsonify([row.to_summary() for row in rows])


def sweep_games(auto_end_after, retain_for, now=None):
    """End games left running too long and delete games past retention.

    Returns (ended codes, deleted codes).
    """
    now = now or _utcnow()
    registry = _registry()
    ended, deleted = [], []

    for row in Game.query.filter(Game.created_at <= now - retain_for).all():
        registry.discard(row.game_code)
        db.session.delete(row)
        deleted.append(row.game_code)
    db.session.commit()

    stale = Game.query.filter(Game.status != 'ended', Game.created_at <= now - auto_end_after).all()
    for row in stale:
        try:
            _apply(row.game_code, lambda s: s.expire())
        except (GameNotFound, GameError) as exc:
            current_app.logger.warning(f"[sweep] game={row.game_code} not ended: {exc}")
            continue
        ended.append(row.game_code)

    current_app.logger.info(f"[sweep] ended={len(ended)} deleted={len(deleted)}")
    return ended, deleted
