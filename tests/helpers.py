"""Network-free stand-ins for the resolver, dialer and DNS transport."""
import asyncio

import dns.message
import dns.rdatatype
import dns.rrset

from domain_seeds import EmptyAnswer, Resolution


def a_reply(name, *addresses, cname=None):
    q = dns.message.make_query(name + ".", dns.rdatatype.A)
    reply = dns.message.make_response(q)
    if cname:
        reply.answer.append(dns.rrset.from_text(name + ".", 300, "IN", "CNAME", cname))
    if addresses:
        owner = cname or name + "."
        reply.answer.append(dns.rrset.from_text(owner, 300, "IN", "A", *addresses))
    return reply


class ScriptedQuery:
    """Replaces dns.asyncquery.udp; pops one outcome per call."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.servers = []

    async def __call__(self, q, where, timeout=None, port=53):
        self.servers.append(where)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


class FakeResolver:
    """Resolves hosts from a table; missing hosts get an empty answer."""

    def __init__(self, table, **_):
        self.table = table
        self.asked = []

    async def resolve(self, host):
        self.asked.append(host)
        addresses = self.table.get(host)
        if not addresses:
            return Resolution(host, [], EmptyAnswer(host))
        return Resolution(host, list(addresses))


class FakeTransport:
    def __init__(self):
        self.aborted = False

    def abort(self):
        self.aborted = True


class FakeWriter:
    def __init__(self, close_error=None, close_delay=0):
        self.close_error = close_error
        self.close_delay = close_delay
        self.closed = False
        self.transport = FakeTransport()

    def close(self):
        self.closed = True

    async def wait_closed(self):
        if self.close_delay:
            await asyncio.sleep(self.close_delay)
        if self.close_error is not None:
            raise self.close_error


class FakeDialer:
    """Handshakes succeed only for (host, address) pairs in ``live``."""

    def __init__(self, live=(), close_error=None, delay=0, close_delay=0, timeout=1.0):
        self.live = set(live)
        self.close_error = close_error
        self.close_delay = close_delay
        self.timeout = timeout
        self.delay = delay
        self.attempts = []
        self.writers = []

    async def handshake(self, domain, address):
        self.attempts.append((domain, address))
        if self.delay:
            await asyncio.sleep(self.delay)
        if (domain, address) not in self.live:
            raise ConnectionRefusedError(111, "Connection refused")
        writer = FakeWriter(self.close_error, self.close_delay)
        self.writers.append(writer)
        return writer
