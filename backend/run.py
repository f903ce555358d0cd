from pairs import create_app, socketio

app = create_app()

if __name__ == '__main__':
    # Use SocketIO server so session timers run as background tasks
    socketio.run(app, debug=True)
