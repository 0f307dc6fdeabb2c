from quizbuzz import db, bcrypt
from flask_login import UserMixin
import json

class User(UserMixin, db.Model):
    """A host account; owns the question batches saved between sessions."""
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    question_sets = db.Column(db.Text, nullable=True)  # JSON-encoded list of batch records

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def get_question_sets(self):
        try:
            return json.loads(self.question_sets) if self.question_sets else []
        except ValueError:
            return []

    def set_question_sets(self, records):
        self.question_sets = json.dumps(records)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'question_set_count': len(self.get_question_sets()),
        }

class RoomSetting(db.Model):
    """Single-row table holding the current room code across restarts."""
    __tablename__ = 'room_setting'
    id = db.Column(db.Integer, primary_key=True)
    room_code = db.Column(db.String(8), nullable=True)

    SINGLETON_ID = 1

    @classmethod
    def current(cls):
        return db.session.get(cls, cls.SINGLETON_ID, populate_existing=True)
