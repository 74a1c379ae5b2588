import threading
import unittest
from scalargrad.engine import ADD, LEAF, MUL, RELU, Context, IdAllocator, Value, add, mul, relu, square


class IdTests(unittest.TestCase):
    def test_increasing(self):
        ids = IdAllocator()
        issued = [ids.next_id() for _ in range(100)]
        self.assertEqual(issued, sorted(set(issued)))
        self.assertEqual(ids.last, issued[-1])

    def test_threads_never_share(self):
        ids = IdAllocator()
        results = []

        def work():
            mine = [ids.next_id() for _ in range(1000)]
            results.extend(mine)

        threads = [threading.Thread(target=work) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(len(set(results)), 8000)
        self.assertEqual(ids.last, 8000)

    def test_nodes_get_fresh_ids(self):
        ctx = Context()
        a = Value(1, ctx=ctx)
        b = Value(1, ctx=ctx)
        c = add(a, b)
        self.assertLess(a._id, b._id)
        self.assertLess(b._id, c._id)
        self.assertEqual(ctx.ids.last, c._id)

    def test_ids_unique_across_contexts(self):
        x = Context()
        y = Context(seed=5)
        a = Value(0, ctx=x)
        b = Value(0, ctx=y)
        c = Value(0)
        self.assertEqual(len({a._id, b._id, c._id}), 3)
        self.assertLess(a._id, b._id)
        self.assertLess(b._id, c._id)
        self.assertIs(x.ids, y.ids)

    def test_mixed_contexts_keep_every_node(self):
        x = Context()
        y = Context()
        Value(0, ctx=x)
        Value(0, ctx=x)
        a = Value(2.0, requires_grad=True, ctx=x)
        b = Value(5.0, requires_grad=True, ctx=y)
        t = add(b, Value(1.0, ctx=y))
        out = mul(a, t)
        self.assertEqual(len(out.topo()), 4)
        out.grad = 1.0
        out.backward()
        self.assertEqual(a.grad, 6.0)
        self.assertEqual(b.grad, 2.0)
        b.data = 9.0
        self.assertEqual(out.forward(), 20.0)


class ContextTests(unittest.TestCase):
    def test_seed_reproducible(self):
        first = [Value.random(Context(seed=42)).data for _ in range(3)]
        a = Context(seed=42)
        b = Context(seed=42)
        xs = [Value.random(a).data for _ in range(5)]
        ys = [Value.random(b).data for _ in range(5)]
        self.assertEqual(xs, ys)
        self.assertEqual(first, [xs[0]] * 3)
        # successive draws from one context differ
        self.assertGreater(len(set(xs)), 1)

    def test_random_range(self):
        ctx = Context(seed=7)
        for _ in range(200):
            v = Value.random(ctx)
            self.assertGreaterEqual(v.data, 0.0)
            self.assertLess(v.data, 1.0)
            self.assertFalse(v.requires_grad)
            self.assertEqual(v._op, LEAF)

    def test_unseeded_random_range(self):
        v = Value.random(Context())
        self.assertGreaterEqual(v.data, 0.0)
        self.assertLess(v.data, 1.0)

    def test_seed_set_once(self):
        ctx = Context()
        ctx.set_seed(3)
        ctx.set_seed(3)
        with self.assertRaises(RuntimeError):
            ctx.set_seed(4)
        self.assertEqual(ctx.seed, 3)


class NodeTests(unittest.TestCase):
    def test_leaf_defaults(self):
        v = Value()
        self.assertEqual(v.data, 0)
        self.assertEqual(v.grad, 0)
        self.assertFalse(v.requires_grad)
        self.assertEqual(v._op, LEAF)
        self.assertEqual(v._prev, ())

    def test_builders(self):
        a = Value(2.0)
        b = Value(-3.0)
        self.assertEqual(add(a, b)._op, ADD)
        self.assertEqual(mul(a, b)._op, MUL)
        r = relu(b)
        self.assertEqual(r._op, RELU)
        self.assertEqual(r._prev, (b,))
        self.assertTrue(r.requires_grad)
        # inputs are left alone
        self.assertEqual((a.data, a.grad, b.data, b.grad), (2.0, 0, -3.0, 0))

    def test_square_aliases_operand(self):
        a = Value(2.0)
        s = square(a)
        self.assertIs(s._prev[0], s._prev[1])

    def test_arity_checked(self):
        a = Value(1.0)
        with self.assertRaises(AssertionError):
            Value(0, (a,), ADD)
        with self.assertRaises(AssertionError):
            Value(0, (a, a), RELU)
        with self.assertRaises(AssertionError):
            Value(0, (a,), LEAF)

    def test_malformed_op(self):
        a = Value(1.0)
        b = relu(a)
        b._op = 'bogus'
        with self.assertRaises(RuntimeError):
            b.forward()
        b.grad = 1.0
        with self.assertRaises(RuntimeError):
            b.backward()


class TopoTests(unittest.TestCase):
    def test_excludes_root(self):
        a = Value(1.0)
        b = relu(a)
        self.assertEqual(b.topo(), [a])
        self.assertEqual(a.topo(), [])

    def test_operands_first(self):
        a = Value(1.0)
        b = Value(2.0)
        c = mul(a, b)
        d = add(c, a)
        e = relu(d)
        topo = e.topo()
        self.assertEqual(topo, [a, b, c, d])
        position = {v._id: i for i, v in enumerate(topo)}
        for v in topo:
            for child in v._prev:
                self.assertLess(position[child._id], position[v._id])

    def test_shared_node_once(self):
        a = Value(3.0)
        s = square(a)
        out = add(s, s)
        self.assertEqual(out.topo(), [a, s])

    def test_equal_values_are_distinct_nodes(self):
        a = Value(1.0)
        b = Value(1.0)
        out = add(a, b)
        self.assertEqual(out.topo(), [a, b])

    def test_memoized(self):
        a = Value(1.0)
        out = add(a, Value(2.0))
        first = out.topo()
        out.forward()
        out.grad = 1.0
        out.backward()
        self.assertIs(out.topo(), first)


if __name__ == "__main__":
    unittest.main()
