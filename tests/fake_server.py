"""
In-process FTP server used by the test suite.

Serves an in-memory tree (nested dicts, `None` for files) over real sockets,
one thread per client, with just enough of the protocol for a crawl.
"""

import logging
import socket
import struct
import threading

logger = logging.getLogger("tests.fake_server")

# Scripted passive reply that closes the control connection instead of answering
DROP = object()

FILE_LINE = "-rw-r--r--    1 ftp      ftp          1024 Jan 01 12:00 {name}"
DIR_LINE = "drwxr-xr-x    2 ftp      ftp          4096 Jan 01 12:00 {name}"


def listing_for(directory):
    return [
        (DIR_LINE if isinstance(child, dict) else FILE_LINE).format(name=name)
        for name, child in directory.items()
    ]


class FakeFtpServer:
    def __init__(self, tree, host="127.0.0.1", password=None, locked=(), reset_on_list=None,
                 reset_on_verb=None, refuse_empty_list=False):
        self.tree = tree
        self.host = host
        self.password = password
        self.locked = set(locked)
        # Abort the control connection (RST) when this LIST number arrives, once
        self.reset_on_list = reset_on_list
        # Abort the control connection on the first command with this verb, once
        self.reset_on_verb = reset_on_verb
        # Answer LIST of an empty directory with 550 and drop the passive listener
        self.refuse_empty_list = refuse_empty_list
        # Replies (or DROP) used for the next PASV/EPSV commands before normal service
        self.passive_script = []
        self.pasv_reply = None
        self.epsv_reply = None

        self.commands = []
        self.connections = 0
        self.list_count = 0
        self._lock = threading.Lock()
        self._running = False

        self.server_sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.server_sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.server_sock.bind((host, 0))
        self.server_sock.listen(5)
        self.server_sock.settimeout(0.2)
        self.port = self.server_sock.getsockname()[1]
        self._thread = threading.Thread(target=self._serve, daemon=True)

    @property
    def endpoint(self):
        return (self.host, self.port)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc):
        self.stop()

    def start(self):
        self._running = True
        self._thread.start()

    def stop(self):
        self._running = False
        self._thread.join(timeout=2)
        self.server_sock.close()

    def verbs(self):
        return [line.split(' ', 1)[0] for line in self.commands]

    # ---------------- listener ----------------
    def _serve(self):
        while self._running:
            try:
                client_sock, client_addr = self.server_sock.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            with self._lock:
                self.connections += 1
            logger.debug("Accepted connection from %s", client_addr)
            t = threading.Thread(target=self._client_handler, args=(client_sock,), daemon=True)
            t.start()

    def _client_handler(self, client_socket):
        session = _Session(client_socket)
        try:
            session.send(220, "Fake FTP ready")
            while self._running:
                raw = session.reader.readline()
                if not raw:
                    break
                line = raw.decode('utf-8', errors='surrogateescape').rstrip('\r\n')
                with self._lock:
                    self.commands.append(line)
                if not self._dispatch(session, line):
                    break
        except OSError:
            logger.debug("Client connection dropped")
        finally:
            session.close()

    # ---------------- commands ----------------
    def _dispatch(self, session, line):
        verb, _, arg = line.partition(' ')
        verb = verb.upper()

        if verb == self.reset_on_verb:
            self.reset_on_verb = None
            session.abort()
            return False

        if verb in ("PASV", "EPSV") and self.passive_script:
            reply = self.passive_script.pop(0)
            if reply is DROP:
                return False
            session.send_raw(reply + "\r\n")
            return True

        if verb == "USER":
            session.send(331, "Please specify the password.")
        elif verb == "PASS":
            if self.password is not None and arg != self.password:
                session.send(530, "Login incorrect.")
            else:
                session.send(230, "Login successful.")
        elif verb == "SYST":
            session.send(215, "UNIX Type: L8")
        elif verb == "FEAT":
            session.send_raw("211-Features:\r\n EPSV\r\n PASV\r\n211 End\r\n")
        elif verb == "PWD":
            session.send(257, f'"/{"/".join(session.path)}" is the current directory')
        elif verb == "TYPE":
            session.send(200, "Switching to Binary mode.")
        elif verb == "PASV":
            port = session.open_passive(self.host)
            reply = self.pasv_reply or "227 Entering Passive Mode ({},{},{}).".format(
                self.host.replace('.', ','), port // 256, port % 256)
            session.send_raw(reply + "\r\n")
        elif verb == "EPSV":
            port = session.open_passive(self.host)
            reply = self.epsv_reply or f"229 Entering Extended Passive Mode (|||{port}|)"
            session.send_raw(reply + "\r\n")
        elif verb == "CWD":
            target = self._lookup(session.path + [arg])
            if isinstance(target, dict) and arg not in self.locked:
                session.path.append(arg)
                session.send(250, "Directory successfully changed.")
            else:
                session.send(550, "Failed to change directory.")
        elif verb == "CDUP":
            if session.path:
                session.path.pop()
            session.send(250, "Directory successfully changed.")
        elif verb == "LIST":
            with self._lock:
                self.list_count += 1
                reset = self.reset_on_list is not None and self.list_count == self.reset_on_list
            if reset:
                self.reset_on_list = None
                session.abort()
                return False
            self._list(session)
        else:
            session.send(502, "Command not implemented.")
        return True

    def _lookup(self, path):
        node = self.tree
        for name in path:
            if not isinstance(node, dict) or name not in node:
                return None
            node = node[name]
        return node

    def _list(self, session):
        if session.data_listener is None:
            session.send(425, "Use PASV first.")
            return
        if self.refuse_empty_list and not self._lookup(session.path):
            session.close_passive()
            session.send(550, "No files found.")
            return
        try:
            data_conn, _ = session.data_listener.accept()
        except OSError:
            session.send(425, "Can't open data connection.")
            session.close_passive()
            return

        session.send(150, "Here comes the directory listing.")
        payload = "".join(line + "\r\n" for line in listing_for(self._lookup(session.path)))
        data_conn.sendall(payload.encode('utf-8', errors='surrogateescape'))
        data_conn.close()
        session.close_passive()
        session.send(226, "Directory send OK.")


class _Session:
    def __init__(self, sock):
        self.sock = sock
        self.reader = sock.makefile('rb')
        self.path = []
        self.data_listener = None

    def send(self, code, message):
        self.send_raw(f"{code} {message}\r\n")

    def send_raw(self, text):
        self.sock.sendall(text.encode('utf-8', errors='surrogateescape'))

    def open_passive(self, host):
        self.close_passive()
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener.bind((host, 0))
        listener.listen(5)
        listener.settimeout(5)
        self.data_listener = listener
        return listener.getsockname()[1]

    def close_passive(self):
        if self.data_listener is not None:
            self.data_listener.close()
            self.data_listener = None

    def abort(self):
        """Closes the control connection with a TCP reset."""
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack('ii', 1, 0))
        self.close()

    def close(self):
        self.close_passive()
        try:
            self.reader.close()
        except OSError:
            pass
        self.sock.close()
