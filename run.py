from quizbuzz import create_app, db, socketio

app = create_app()

if __name__ == '__main__':
    with app.app_context():
        db.create_all()
    # Use SocketIO server to enable websockets in dev
    socketio.run(app, debug=True)
