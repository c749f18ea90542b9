class HuffmanError(ValueError): # base class for everything the codec raises
    pass


class FormatError(HuffmanError): # malformed or ambiguous code table
    pass


class StructuralError(HuffmanError): # descending past a leaf
    pass


class TruncatedInputError(HuffmanError): # bit source ran out in the middle of a code
    pass


class EmptyAlphabetError(HuffmanError): # no symbol with a non-zero frequency
    pass
