import random
import threading

# op tags
LEAF = ''
ADD = '+'
MUL = '*'
RELU = 'ReLU'

ARITY = {LEAF: 0, ADD: 2, MUL: 2, RELU: 1}


class IdAllocator:
    """ hands out strictly increasing node identifiers, safe across threads """

    def __init__(self):
        self._lock = threading.Lock()
        self.last = 0

    def next_id(self):
        with self._lock:
            self.last += 1
            return self.last


# node ids are unique for the whole process, whichever context built the node
_ids = IdAllocator()


class Context:
    """ shared identifier allocator plus the random-leaf seed (0 means non-deterministic) """

    def __init__(self, seed=0):
        self.ids = _ids
        self.seed = 0
        self._random = None
        if seed:
            self.set_seed(seed)

    def set_seed(self, seed):
        if self.seed and seed != self.seed:
            raise RuntimeError(f"seed already set to {self.seed}, refusing {seed}")
        if not seed or seed == self.seed:
            return
        self.seed = seed
        self._random = random.Random(seed)

    def uniform(self):
        if self._random is None:
            return random.random()
        return self._random.random()


_default = Context()


def default_context():
    return _default


def set_seed(seed):
    _default.set_seed(seed)


class Value:
    """ stores a single scalar value and its gradient """
    __slots__ = ("data", "grad", "requires_grad", "_op", "_prev", "_id", "_ctx", "_topo", "_reset")

    def __init__(self, data=0, _children=(), _op=LEAF, requires_grad=False, ctx=None):
        assert _op in ARITY, f"unknown op {_op!r}"
        assert len(_children) == ARITY[_op], \
            f"op {_op!r} takes {ARITY[_op]} operands, got {len(_children)}"
        self.data = data
        self.grad = 0
        self.requires_grad = requires_grad
        self._ctx = ctx if ctx is not None else _default
        # internal variables used for autograd graph construction
        self._op = _op
        self._prev = tuple(_children)
        self._id = self._ctx.ids.next_id()
        self._topo = None
        self._reset = False

    @classmethod
    def random(cls, ctx=None, requires_grad=False):
        ctx = ctx if ctx is not None else _default
        return cls(ctx.uniform(), requires_grad=requires_grad, ctx=ctx)

    def _lift(self, other):
        return other if isinstance(other, Value) else Value(other, ctx=self._ctx)

    def __add__(self, other):
        return add(self, self._lift(other))

    def __mul__(self, other):
        return mul(self, self._lift(other))

    def relu(self):
        return relu(self)

    def square(self):
        return square(self)

    def __neg__(self): # -self
        return neg(self)

    def __radd__(self, other): # other + self
        return add(self._lift(other), self)

    def __sub__(self, other): # self - other
        return self + (-self._lift(other))

    def __rsub__(self, other): # other - self
        return self._lift(other) + (-self)

    def __rmul__(self, other): # other * self
        return mul(self._lift(other), self)

    def topo(self):
        """ every ancestor in operand-first order, excluding self; cached """
        if self._topo is None:
            self._topo = self._build_topo()
        return self._topo

    def _build_topo(self):
        topo = []
        visited = {self._id}
        # explicit stack instead of recursion so deep graphs don't blow the
        # interpreter stack; a node is emitted once all its operands are
        stack = [(child, False) for child in reversed(self._prev)]
        while stack:
            v, expanded = stack.pop()
            if expanded:
                topo.append(v)
                continue
            if v._id in visited:
                continue
            visited.add(v._id)
            stack.append((v, True))
            for child in reversed(v._prev):
                if child._id not in visited:
                    stack.append((child, False))
        return topo

    def _forward(self):
        op, prev = self._op, self._prev
        if op == LEAF:
            return
        if op == ADD:
            self.data = prev[0].data + prev[1].data
        elif op == MUL:
            self.data = prev[0].data * prev[1].data
        elif op == RELU:
            self.data = prev[0].data if prev[0].data > 0 else 0.0
        else:
            raise RuntimeError(f"unexpected op {op!r}")

    def _backward(self):
        op, prev = self._op, self._prev
        if op == LEAF:
            return
        if op == ADD:
            left, right = prev
            if left.requires_grad:
                left.grad += self.grad
            if right.requires_grad:
                right.grad += self.grad
        elif op == MUL:
            # left and right may be the same node (square); both slots count
            left, right = prev
            if left.requires_grad:
                left.grad += right.data * self.grad
            if right.requires_grad:
                right.grad += left.data * self.grad
        elif op == RELU:
            (arg,) = prev
            if arg.requires_grad:
                arg.grad += self.grad if self.data > 0 else 0
        else:
            raise RuntimeError(f"unexpected op {op!r}")

    def forward(self):
        for v in self.topo():
            v._forward()
        self._forward()
        return self.data

    def backward(self):
        """
        Propagate self.grad to every ancestor. The caller seeds self.grad
        (1.0 for a scalar loss) beforehand.

        Nodes downstream of a zero_grad() leaf are cleared before gradients
        are accumulated again, so contributions from earlier passes don't
        leak into this one.
        """
        topo = self.topo()

        for v in topo:
            if v._reset or any(child._reset for child in v._prev):
                v._reset = True
                v.grad = 0

        # go one variable at a time and apply the chain rule to get its gradient
        self._backward()
        self._reset = False
        for v in reversed(topo):
            v._reset = False
            v._backward()

    def zero_grad(self):
        self.grad = 0
        self._reset = True

    def __repr__(self):
        return f"Value(data={self.data}, grad={self.grad})"


def add(a, b):
    return Value(a.data + b.data, (a, b), ADD, requires_grad=True, ctx=a._ctx)


def mul(a, b):
    return Value(a.data * b.data, (a, b), MUL, requires_grad=True, ctx=a._ctx)


def relu(a):
    return Value(a.data if a.data > 0 else 0.0, (a,), RELU, requires_grad=True, ctx=a._ctx)


def neg(a):
    return mul(a, Value(-1, ctx=a._ctx))


def square(a):
    return mul(a, a)
