import matplotlib
matplotlib.use('Agg')

import numpy as np
import matplotlib.pyplot as plt

from plots import plot_matrix, plot_matrix_row


def test_plot_matrix_annotates_every_cell():
    fig, ax = plt.subplots()
    plot_matrix(ax, np.arange(6).reshape(2, 3), title="m")
    assert len(ax.texts) == 6
    assert ax.get_title() == "m"
    plt.close(fig)


def test_plot_matrix_marks_zero_in_red():
    fig, ax = plt.subplots()
    plot_matrix(ax, [[0.0, 1.5]])
    colors = {t.get_text(): t.get_color() for t in ax.texts}
    assert colors["0"] == 'red'
    plt.close(fig)


def test_plot_matrix_greys_padding():
    fig, ax = plt.subplots()
    plot_matrix(ax, np.pad(np.ones((2, 2)), 1), padding=1)
    assert len(ax.patches) == 12
    plt.close(fig)


def test_plot_matrix_empty_shows_placeholder():
    fig, ax = plt.subplots()
    plot_matrix(ax, np.zeros((0, 0)))
    assert [t.get_text() for t in ax.texts] == ['no output']
    plt.close(fig)


def test_plot_matrix_row_one_axis_per_matrix():
    fig = plot_matrix_row([np.ones((3, 3)), np.zeros((0, 0)), np.ones((2, 2))], ["a", "b", "c"])
    assert len(fig.axes) == 3
    plt.close(fig)


def test_plot_matrix_row_empty_list():
    fig = plot_matrix_row([])
    assert len(fig.axes) == 1
    plt.close(fig)
