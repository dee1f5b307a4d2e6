import os

ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE', 'gevent')
if ASYNC_MODE == 'gevent':
    from gevent import monkey
    monkey.patch_all()

from flask import Flask, render_template, request, redirect, url_for, jsonify, make_response
from flask_socketio import SocketIO, join_room, leave_room, emit
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager, UserMixin, login_user, logout_user, current_user, login_required
from flask_migrate import Migrate
import json, logging, time

from ultimate.continuation import continue_match
from ultimate.difficulty import MAX_LEVEL
from ultimate.errors import OutOfRange
from ultimate.opponent import LocalOpponent, MoveRequest, MoveResponse, HintRequest, parse_index
from ultimate.profiles import PlayerProfile, ProfileStore, normalize_name, valid_name
from ultimate.rules import GameState, Status
from ultimate.session import Session, Submission

logging.basicConfig(level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
                    format='%(asctime)s %(levelname)s %(name)s: %(message)s')
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'a_secret_key')
# ── Database path ─────────────────────────────────────────────────────────────
# DATABASE_URL may point at Postgres; otherwise a SQLite file lives in an
# 'instance' folder next to app.py.
_db_url = os.environ.get('DATABASE_URL', None)
if _db_url and _db_url.startswith('postgres://'):
    # SQLAlchemy 1.4+ requires postgresql:// not postgres://
    _db_url = _db_url.replace('postgres://', 'postgresql://', 1)
if not _db_url:
    _data_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'instance')
    os.makedirs(_data_dir, exist_ok=True)
    _db_url = f'sqlite:///{os.path.join(_data_dir, "db.sqlite3")}'
app.config['SQLALCHEMY_DATABASE_URI'] = _db_url
db = SQLAlchemy(app)
migrate = Migrate(app, db)
socketio = SocketIO(app, async_mode=ASYNC_MODE)
login_manager = LoginManager(app)

opponent = LocalOpponent()
seats    = {}   # player name -> Seat; every socket on that name shares it
seated   = {}   # socket sid -> player name

# ── Models ───────────────────────────────────────────────────────────────────
class Player(db.Model):
    id           = db.Column(db.Integer, primary_key=True)
    name         = db.Column(db.String(100), unique=True, nullable=False)
    level        = db.Column(db.Integer, default=0, nullable=False)
    streak_json  = db.Column(db.Text, nullable=True)
    session_json = db.Column(db.Text, nullable=True)
    updated_at   = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

class PlayerUser(UserMixin):
    def __init__(self, name):
        self.id = name
        self.username = name

@login_manager.user_loader
def load_user(user_id):
    name = normalize_name(user_id)
    return PlayerUser(name) if name else None

# ── Profile store ────────────────────────────────────────────────────────────
class SqlProfileStore(ProfileStore):
    def _get(self, key):
        p = Player.query.filter_by(name=key).first()
        if not p: return None
        return {
            "level":   p.level,
            "streak":  json.loads(p.streak_json) if p.streak_json else [],
            "session": json.loads(p.session_json) if p.session_json else None,
        }

    def _put(self, key, record):
        p = Player.query.filter_by(name=key).first()
        if not p:
            p = Player(name=key)
            db.session.add(p)
        p.level        = record["level"]
        p.streak_json  = json.dumps(record["streak"])
        p.session_json = json.dumps(record["session"]) if record["session"] else None
        db.session.commit()

    def _levels(self):
        return [(p.name, p.level) for p in Player.query.all()]

store = SqlProfileStore()

# ── Seats ─────────────────────────────────────────────────────────────────────
class Seat:
    """The selected player's live session and difficulty counters."""
    def __init__(self, name, profile):
        self.name       = name
        self.session    = profile.session or Session()
        self.controller = profile.controller()
        self.sids       = set()

    @property
    def room(self):
        return f"player:{self.name}"

    def profile(self):
        p = PlayerProfile(session=self.session)
        p.absorb(self.controller)
        return p

def persist(seat):
    store.save(seat.name, seat.profile())

def full_state(seat):
    s  = seat.session.state.to_dict()
    ss = seat.session
    s["player"]   = seat.name
    s["level"]    = seat.controller.level
    s["maxLevel"] = seat.controller.max_level
    s["streak"]   = seat.controller.streak_tags()
    s["assisted"] = ss.assisted
    s["canUndo"]  = ss.can_undo
    s["busy"]     = ss.busy
    s["legal"]    = [list(m) for m in ss.legal_moves()]
    s["hint"]     = ss.pending_hint.to_dict() if ss.pending_hint else None
    return s

def players_list():
    return [{"name": n, "level": lvl} for n, lvl in store.list()]

# ── Routes ───────────────────────────────────────────────────────────────────
@app.route('/')
def index():
    v = request.args.get('v', '')
    if not v.isdigit():
        return redirect(url_for('index', v=int(time.time())))
    resp = make_response(render_template('index.html', version=v))
    resp.headers['Cache-Control'] = 'no-store'
    return resp

@app.route('/api/new', methods=['POST'])
def api_new():
    return jsonify(opponent.new_game().to_dict())

@app.route('/api/move', methods=['POST'])
def api_move():
    data = request.get_json(silent=True) or {}
    try:
        state = GameState.from_dict(data['state'])
    except (KeyError, TypeError, ValueError, IndexError) as e:
        return jsonify({"ok": False, "error": f"Invalid state ({e})"}), 400
    try:
        b = parse_index(data.get('board_idx'))
        c = parse_index(data.get('cell_idx'))
        level = max(0, min(parse_index(data.get('level', 0)), MAX_LEVEL))
    except OutOfRange:
        return jsonify(MoveResponse(False, state, "Invalid indices").to_dict())
    return jsonify(opponent.submit_move(MoveRequest(state, b, c, level)).to_dict())

@app.route('/api/hint', methods=['POST'])
def api_hint():
    data = request.get_json(silent=True) or {}
    try:
        state = GameState.from_dict(data['state'])
    except (KeyError, TypeError, ValueError, IndexError) as e:
        return jsonify({"error": f"Invalid state ({e})"}), 400
    return jsonify(opponent.hint(HintRequest(state)).to_dict())

@app.route('/api/players')
def api_players():
    return jsonify(players_list())

@app.route('/api/select', methods=['POST'])
def api_select():
    raw = (request.get_json(silent=True) or {}).get('name')
    if not valid_name(raw):
        return jsonify({"error": "Name must not be empty"}), 400
    name = normalize_name(raw)
    login_user(PlayerUser(name))
    return jsonify(profile_summary(name))

@app.route('/api/profile')
@login_required
def api_profile():
    return jsonify(profile_summary(current_user.id))

@app.route('/api/logout', methods=['POST'])
def api_logout():
    logout_user()
    return jsonify({"ok": True})

def profile_summary(name):
    p = store.load(name)
    return {
        "name":    name,
        "level":   p.level,
        "streak":  [s.value for s in p.streak],
        "inMatch": p.session is not None and not p.session.state.status.is_terminal,
    }

# ── SocketIO Events ───────────────────────────────────────────────────────────
def _seat():
    name = seated.get(request.sid)
    return seats.get(name) if name else None

def _leave(sid):
    """Detach a socket from its seat; the last one out saves and closes it."""
    name = seated.pop(sid, None)
    seat = seats.get(name) if name else None
    if not seat: return None
    seat.sids.discard(sid)
    leave_room(seat.room, sid=sid)
    persist(seat)
    if not seat.sids:
        seats.pop(name, None)
    return seat

@socketio.on("select_player")
def select_player(data):
    raw = (data or {}).get("name")
    if not valid_name(raw):
        emit("invalid_name"); return
    name = normalize_name(raw)
    prev = _seat()
    if prev and prev.session.busy: return
    if prev and prev.name == name:
        emit("state", full_state(prev)); return
    if prev:
        _leave(request.sid)
        logger.info("Saved %s before switching to %s", prev.name, name)
    seat = seats.get(name)
    if seat is None:
        seat = seats[name] = Seat(name, store.load(name))
        persist(seat)
    seat.sids.add(request.sid)
    seated[request.sid] = name
    join_room(seat.room)
    login_user(PlayerUser(name))
    emit("state", full_state(seat))

@socketio.on("players")
def players(data=None):
    emit("players", players_list())

@socketio.on("new_game")
def new_game(data=None):
    seat = _seat()
    if not seat or seat.session.busy: return
    seat.session.reset(opponent.new_game())
    persist(seat)
    emit("state", full_state(seat), room=seat.room)

@socketio.on("move")
def move(data):
    seat = _seat()
    if not seat or seat.session.busy: return
    ss = seat.session
    result = ss.submit_move(opponent, (data or {}).get("board"), (data or {}).get("cell"),
                            seat.controller.level)
    if result is Submission.REJECTED: return
    if result is Submission.FAILED:
        emit("move_failed", {})
        emit("state", full_state(seat), room=seat.room); return
    if ss.state.status.is_terminal:
        ss.settle(seat.controller)
    persist(seat)
    emit("state", full_state(seat), room=seat.room)

@socketio.on("hint")
def hint(data=None):
    seat = _seat()
    if not seat or seat.session.busy: return
    if seat.session.state.status is not Status.BLUE_TO_MOVE: return
    h = seat.session.request_hint(opponent)
    persist(seat)
    emit("hint", h.to_dict() if h else {})
    emit("state", full_state(seat), room=seat.room)

@socketio.on("undo")
def undo(data=None):
    seat = _seat()
    if not seat or seat.session.busy: return
    if seat.session.undo():
        persist(seat)
        emit("state", full_state(seat), room=seat.room)

@socketio.on("continue")
def continue_game(data=None):
    seat = _seat()
    if not seat or seat.session.busy: return
    if continue_match(seat.session):
        persist(seat)
        emit("state", full_state(seat), room=seat.room)

@socketio.on('disconnect')
def disconnect(*args):
    _leave(request.sid)

def _ensure_db():
    """Create any missing tables. Runs on every startup so no manual
    flask db upgrade is ever required.
    """
    with app.app_context():
        db.create_all()
        logger.info("[db] Schema ready at %s", db.engine.url.render_as_string(hide_password=True))

_ensure_db()

if __name__ == "__main__":
    socketio.run(app, debug=True)
